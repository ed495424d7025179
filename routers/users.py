import datetime
import json
import logging
from typing import Annotated, Optional

from cryptography.fernet import Fernet, InvalidToken
from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile, status
from google.cloud import storage
from google.cloud.firestore import AsyncClient, FieldFilter

import AuthAndUser as auth
import sendgridemail
from domain.user import Challenge, Profile, ProfileUpdate, SignUpUser
from services.clients import get_firestore_client, get_gcs_client
from services.storage import discard_image, store_optional_image

logger = logging.getLogger('uvicorn.error')

CHALLENGE_TTL_SECONDS = 24 * 60 * 60
PROFILES_COLLECTION = "profiles"

router = APIRouter()


def get_fernet(request: Request) -> Fernet:
    if not getattr(request.app.state, 'fernet', None):
        logger.error("Fernet not initialized; sign-up is unavailable.")
        raise HTTPException(status_code=503, detail="Sign-up service unavailable")
    return request.app.state.fernet


async def get_profile(db: AsyncClient, user: auth.User) -> Profile:
    profile_doc = await db.collection(PROFILES_COLLECTION).document(user.username).get()
    if not profile_doc.exists:
        return Profile(name=user.name)
    return Profile(**profile_doc.to_dict())


@router.get("/users/me/", response_model=auth.User, tags=["users"])
async def read_users_me(
    current_user: Annotated[auth.User, Depends(auth.get_current_active_user)],
):
    return current_user


@router.post("/challenge/", tags=["users"])
async def create_challenge(
    user: SignUpUser,
    fernet: Annotated[Fernet, Depends(get_fernet)],
):
    pending = {
        "name": user.name,
        "email": user.email,
        "user_type": user.user_type,
        "hashed_password": auth.get_password_hash(user.password),
    }
    challenge = fernet.encrypt(json.dumps(pending).encode("utf-8")).decode("utf-8")
    if not sendgridemail.send_email(user, challenge):
        raise HTTPException(status_code=502, detail="Could not send the confirmation email. Please try again later.")
    return {"message": f"Check your inbox at {user.email} to confirm your account"}


@router.post("/users/", response_model=auth.User, status_code=status.HTTP_201_CREATED, tags=["users"])
async def create_user(
    challenge: Challenge,
    fernet: Annotated[Fernet, Depends(get_fernet)],
    db: AsyncClient = Depends(get_firestore_client),
):
    try:
        pending = json.loads(fernet.decrypt(challenge.challenge.encode("utf-8"), ttl=CHALLENGE_TTL_SECONDS))
    except InvalidToken:
        logger.warning("Rejected invalid or expired sign-up challenge.")
        raise HTTPException(status_code=400, detail="Invalid or expired confirmation link.")

    email = pending["email"]
    users_ref = db.collection(auth.USERS_COLLECTION)
    existing = users_ref.where(filter=FieldFilter("email", "==", email)).stream()
    async for _ in existing:
        logger.warning(f"Sign-up for existing email {email} rejected.")
        raise HTTPException(status_code=409, detail=f"User with email: {email} already exists. Please log in.")

    user = auth.User(username=email, email=email, name=pending["name"], disabled=False)
    try:
        await users_ref.document(user.username).set({
            **user.model_dump(),
            "hashed_password": pending["hashed_password"],
        })
        profile = Profile(
            name=pending["name"],
            user_type=pending.get("user_type", "founder"),
            updated_at=datetime.datetime.now(datetime.timezone.utc),
        )
        await db.collection(PROFILES_COLLECTION).document(user.username).set(profile.model_dump())
        logger.info(f"Created user {user.username}")
        return user
    except Exception as e:
        logger.exception(f"Error creating user {email}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error while creating user")


@router.get("/users/me/profile", response_model=Profile, tags=["users"])
async def read_my_profile(
    current_user: Annotated[auth.User, Depends(auth.get_current_active_user)],
    db: AsyncClient = Depends(get_firestore_client),
):
    return await get_profile(db, current_user)


@router.put("/users/me/profile", response_model=Profile, tags=["users"])
async def update_my_profile(
    profile_in: ProfileUpdate,
    current_user: Annotated[auth.User, Depends(auth.get_current_active_user)],
    db: AsyncClient = Depends(get_firestore_client),
):
    current = await get_profile(db, current_user)
    updated = current.model_copy(update={
        **profile_in.model_dump(mode="json"),
        "updated_at": datetime.datetime.now(datetime.timezone.utc),
    })
    try:
        await db.collection(PROFILES_COLLECTION).document(current_user.username).set(updated.model_dump())
        logger.info(f"User '{current_user.username}' updated their profile")
        return updated
    except Exception as e:
        logger.exception(f"Error updating profile for user '{current_user.username}': {e}")
        raise HTTPException(status_code=500, detail="Internal server error while updating profile")


@router.post("/users/me/avatar", response_model=Profile, tags=["users"])
async def upload_my_avatar(
    current_user: Annotated[auth.User, Depends(auth.get_current_active_user)],
    avatar_file: UploadFile = File(...),
    db: AsyncClient = Depends(get_firestore_client),
    gcs: storage.Client = Depends(get_gcs_client),
):
    avatar_url: Optional[str] = await store_optional_image(
        gcs, avatar_file, folder=f"avatars/{current_user.username}", username=current_user.username
    )
    if avatar_url is None:
        raise HTTPException(status_code=500, detail="Avatar upload failed.")
    current = await get_profile(db, current_user)
    updated = current.model_copy(update={
        "avatar_url": avatar_url,
        "updated_at": datetime.datetime.now(datetime.timezone.utc),
    })
    try:
        await db.collection(PROFILES_COLLECTION).document(current_user.username).set(updated.model_dump())
        logger.info(f"User '{current_user.username}' uploaded a new avatar {avatar_url}")
        return updated
    except Exception as e:
        logger.exception(f"Error saving avatar for user '{current_user.username}': {e}")
        discard_image(gcs, avatar_url)
        raise HTTPException(status_code=500, detail="Internal server error while saving avatar")
