import logging
from typing import Annotated, List, Optional
import datetime
import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from google.cloud.firestore import AsyncClient

import AuthAndUser as auth
from domain.resources import PLACEHOLDER_IMAGE, Resource, ResourceCreate
from services.clients import get_firestore_client
from services.listing import get_model_or_404, list_newest_first, matches_choice, matches_search

logger = logging.getLogger('uvicorn.error')

RESOURCES_COLLECTION = "resources"

router = APIRouter(
    prefix="/resources",
    tags=["resources"]
)


@router.get("/", response_model=List[Resource])
async def list_resources(
    q: Optional[str] = None,
    type: Optional[str] = None,
    category: Optional[str] = None,
    db: AsyncClient = Depends(get_firestore_client)
):
    try:
        return await list_newest_first(
            db, RESOURCES_COLLECTION, Resource,
            lambda r: matches_search(q, r.title) and matches_choice(type, r.type) and matches_choice(category, r.category),
        )
    except Exception as e:
        logger.exception(f"Error retrieving resources: {e}")
        raise HTTPException(status_code=500, detail="Internal server error while fetching resources")


@router.get("/{resource_id}", response_model=Resource)
async def get_resource(
    resource_id: str,
    db: AsyncClient = Depends(get_firestore_client)
):
    try:
        return await get_model_or_404(db, RESOURCES_COLLECTION, resource_id, Resource)
    except HTTPException as http_exc:
        raise http_exc
    except Exception as e:
        logger.exception(f"Error retrieving resource {resource_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error while fetching resource")


@router.post("/", response_model=Resource, status_code=status.HTTP_201_CREATED)
async def create_resource(
    resource_in: ResourceCreate,
    current_user: Annotated[auth.User, Depends(auth.get_current_active_user)],
    db: AsyncClient = Depends(get_firestore_client)
):
    now = datetime.datetime.now(datetime.timezone.utc)
    resource_id = f"resource-{uuid.uuid4().hex}"
    resource = Resource(
        id=resource_id,
        image=PLACEHOLDER_IMAGE,
        created_at=now,
        updated_at=now,
        **resource_in.model_dump(exclude={"content_url"}),
        content_url=resource_in.content_url or None,
    )
    try:
        await db.collection(RESOURCES_COLLECTION).document(resource_id).set(resource.model_dump(exclude={"id"}))
        logger.info(f"User '{current_user.username}' shared resource '{resource_id}' ({resource.title})")
        return resource
    except Exception as e:
        logger.exception(f"Error creating resource '{resource_in.title}' for user '{current_user.username}': {e}")
        raise HTTPException(status_code=500, detail="Internal server error while creating resource")
