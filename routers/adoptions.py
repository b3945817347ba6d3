from fastapi import APIRouter, Depends, status
from pymongo import DESCENDING
from pymongo.database import Database

from auth import AuthUser, get_current_user
from database import create_document, get_db, get_documents, oid, serialize, utcnow
from errors import NotFoundError, PermissionDeniedError, ValidationError
from schemas import Adoption, AdoptionCreate, AdoptionDecision, AdoptionStatus

router = APIRouter(prefix="/adoptions", tags=["adoptions"])


@router.post("", status_code=status.HTTP_201_CREATED)
def request_adoption(payload: AdoptionCreate, user: AuthUser = Depends(get_current_user),
                     db: Database = Depends(get_db)):
    pet = db["pet"].find_one({"_id": oid(payload.pet_id)})
    if not pet:
        raise NotFoundError("Pet not found")
    if pet.get("adopted"):
        raise ValidationError("Pet already adopted")
    if pet.get("userEmail") == user.email:
        raise ValidationError("You cannot adopt your own pet")
    existing = db["adoption"].find_one({
        "petId": payload.pet_id,
        "requesterEmail": user.email,
        "status": AdoptionStatus.pending.value,
    })
    if existing:
        raise ValidationError("Adoption request already pending")

    adoption = Adoption(
        pet_id=payload.pet_id,
        pet_name=pet.get("name", ""),
        pet_image=pet.get("imageUrl"),
        owner_email=pet.get("userEmail", ""),
        requester_email=user.email,
        requester_name=payload.requester_name,
        phone=payload.phone,
        address=payload.address,
    )
    return create_document(db, "adoption", adoption.model_dump(by_alias=True, mode="json"))


@router.get("/received")
def received_requests(user: AuthUser = Depends(get_current_user), db: Database = Depends(get_db)):
    return get_documents(db, "adoption", {"ownerEmail": user.email}, sort=[("createdAt", DESCENDING)])


@router.get("/sent")
def sent_requests(user: AuthUser = Depends(get_current_user), db: Database = Depends(get_db)):
    return get_documents(db, "adoption", {"requesterEmail": user.email}, sort=[("createdAt", DESCENDING)])


@router.patch("/{adoption_id}/status")
def decide_adoption(adoption_id: str, payload: AdoptionDecision, user: AuthUser = Depends(get_current_user),
                    db: Database = Depends(get_db)):
    _id = oid(adoption_id)
    adoption = db["adoption"].find_one({"_id": _id})
    if not adoption:
        raise NotFoundError("Adoption request not found")
    if adoption.get("ownerEmail") != user.email:
        raise PermissionDeniedError("Only the pet's owner can decide on this request")

    db["adoption"].update_one({"_id": _id}, {"$set": {"status": payload.status.value, "updatedAt": utcnow()}})
    if payload.status == AdoptionStatus.accepted:
        db["pet"].update_one({"_id": oid(adoption["petId"])}, {"$set": {"adopted": True, "updatedAt": utcnow()}})
    return serialize(db["adoption"].find_one({"_id": _id}))
