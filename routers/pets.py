import re
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Query, status
from pymongo import DESCENDING
from pymongo.database import Database

from auth import AuthUser, get_current_user
from database import create_document, get_db, get_documents, oid, serialize, utcnow
from errors import NotFoundError, ValidationError
from schemas import AdoptedRequest, Pet, PetCreate, PetUpdate

router = APIRouter(prefix="/pets", tags=["pets"])
logger = structlog.get_logger(__name__)


@router.post("/add", status_code=status.HTTP_201_CREATED)
def create_pet(payload: PetCreate, user: AuthUser = Depends(get_current_user), db: Database = Depends(get_db)):
    pet = Pet(**payload.model_dump(), user_email=user.email)
    doc = create_document(db, "pet", pet)
    logger.info("Pet listed", pet_id=doc["id"], owner=user.email)
    return doc


@router.get("")
def list_pets(
    search: Optional[str] = None,
    category: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(9, ge=1, le=100),
    db: Database = Depends(get_db),
):
    query = {"adopted": False}
    if search:
        query["name"] = {"$regex": re.escape(search), "$options": "i"}
    if category:
        query["category"] = category
    pets = get_documents(db, "pet", query, sort=[("createdAt", DESCENDING)], skip=(page - 1) * limit, limit=limit)
    return {"pets": pets, "totalCount": db["pet"].count_documents(query)}


@router.get("/my")
def my_pets(user: AuthUser = Depends(get_current_user), db: Database = Depends(get_db)):
    return get_documents(db, "pet", {"userEmail": user.email}, sort=[("createdAt", DESCENDING)])


@router.get("/{pet_id}")
def get_pet(pet_id: str, db: Database = Depends(get_db)):
    pet = db["pet"].find_one({"_id": oid(pet_id)})
    if not pet:
        raise NotFoundError("Pet not found")
    return serialize(pet)


@router.patch("/update/{pet_id}")
def update_pet(pet_id: str, payload: PetUpdate, user: AuthUser = Depends(get_current_user),
               db: Database = Depends(get_db)):
    _id = oid(pet_id)
    fields = payload.model_dump(by_alias=True, exclude_unset=True)
    if not fields:
        raise ValidationError("No fields to update")
    fields["updatedAt"] = utcnow()
    result = db["pet"].update_one({"_id": _id}, {"$set": fields})
    if not result.matched_count:
        raise NotFoundError("Pet not found")
    return serialize(db["pet"].find_one({"_id": _id}))


@router.patch("/adopt/{pet_id}")
def set_adopted(pet_id: str, payload: AdoptedRequest, user: AuthUser = Depends(get_current_user),
                db: Database = Depends(get_db)):
    result = db["pet"].update_one({"_id": oid(pet_id)}, {"$set": {"adopted": payload.adopted, "updatedAt": utcnow()}})
    if not result.matched_count:
        raise NotFoundError("Pet not found")
    return {"success": True, "adopted": payload.adopted}


@router.delete("/{pet_id}")
def delete_pet(pet_id: str, user: AuthUser = Depends(get_current_user), db: Database = Depends(get_db)):
    result = db["pet"].delete_one({"_id": oid(pet_id)})
    if not result.deleted_count:
        raise NotFoundError("Pet not found")
    return {"deletedCount": result.deleted_count}
