from fastapi import APIRouter, Depends, Response
from pymongo.database import Database

from auth import AuthUser, create_access_token, ensure_same_user, get_current_user
from config import Settings, get_settings
from database import create_document, get_db, serialize
from errors import NotFoundError
from schemas import TokenRequest, User

router = APIRouter(tags=["users"])


# -------------------------
# Session tokens
# -------------------------
@router.post("/jwt")
def issue_token(payload: TokenRequest, response: Response, settings: Settings = Depends(get_settings)):
    token = create_access_token(payload.email, settings)
    response.set_cookie(
        settings.cookie_name,
        token,
        httponly=True,
        secure=settings.cookie_secure,
        samesite=settings.cookie_samesite,
        max_age=settings.token_expire_minutes * 60,
    )
    return {"success": True, "token": token}


@router.post("/logout")
def logout(response: Response, settings: Settings = Depends(get_settings)):
    response.delete_cookie(settings.cookie_name, secure=settings.cookie_secure, samesite=settings.cookie_samesite)
    return {"success": True}


# -------------------------
# Users
# -------------------------
@router.post("/users")
def save_user(payload: User, db: Database = Depends(get_db)):
    # ensure email unique
    existing = db["user"].find_one({"email": payload.email})
    if existing:
        return {"message": "user already exists", "insertedId": None}
    doc = create_document(db, "user", payload.model_copy(update={"role": "user"}))
    return {"insertedId": doc["id"]}


@router.get("/users/{email}")
def get_user(email: str, user: AuthUser = Depends(get_current_user), db: Database = Depends(get_db)):
    ensure_same_user(user, email)
    doc = db["user"].find_one({"email": email})
    if not doc:
        raise NotFoundError("User not found")
    return serialize(doc)
