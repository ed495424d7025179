import logging
from typing import Annotated, List, Optional
import datetime
import uuid

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from google.cloud import storage
from google.cloud.firestore import AsyncClient, FieldFilter

import AuthAndUser as auth
from domain.startups import LinkedInvestor, Startup, StartupDetail
from services.clients import get_firestore_client, get_gcs_client
from services.listing import get_model_or_404, list_newest_first, matches_choice, matches_search
from services.storage import discard_image, store_optional_image

logger = logging.getLogger('uvicorn.error')

STARTUPS_COLLECTION = "startups"
INVESTORS_COLLECTION = "investors"
STARTUP_INVESTORS_COLLECTION = "startup_investors"

router = APIRouter(
    prefix="/startups",
    tags=["startups"]
)


async def fetch_linked_investors(db: AsyncClient, startup_id: str) -> List[LinkedInvestor]:
    links = db.collection(STARTUP_INVESTORS_COLLECTION).where(filter=FieldFilter("startup_id", "==", startup_id))
    investors = []
    async for link in links.stream():
        investor_id = link.to_dict().get("investor_id")
        if not investor_id:
            continue
        investor_doc = await db.collection(INVESTORS_COLLECTION).document(investor_id).get()
        if not investor_doc.exists:
            logger.warning(f"Startup {startup_id} links to missing investor {investor_id}")
            continue
        data = investor_doc.to_dict()
        investors.append(LinkedInvestor(id=investor_doc.id, name=data.get("name", ""), logo=data.get("logo")))
    return investors


@router.get("/", response_model=List[Startup])
async def list_startups(
    q: Optional[str] = None,
    category: Optional[str] = None,
    stage: Optional[str] = None,
    db: AsyncClient = Depends(get_firestore_client)
):
    try:
        return await list_newest_first(
            db, STARTUPS_COLLECTION, Startup,
            lambda s: matches_search(q, s.name) and matches_choice(category, s.category) and matches_choice(stage, s.stage),
        )
    except Exception as e:
        logger.exception(f"Error retrieving startups: {e}")
        raise HTTPException(status_code=500, detail="Internal server error while fetching startups")


@router.get("/{startup_id}", response_model=StartupDetail)
async def get_startup(
    startup_id: str,
    db: AsyncClient = Depends(get_firestore_client)
):
    try:
        startup = await get_model_or_404(db, STARTUPS_COLLECTION, startup_id, Startup)
        investors = await fetch_linked_investors(db, startup_id)
        return StartupDetail(**startup.model_dump(), investors=investors)
    except HTTPException as http_exc:
        raise http_exc
    except Exception as e:
        logger.exception(f"Error retrieving startup {startup_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error while fetching startup")


@router.post("/", response_model=Startup, status_code=status.HTTP_201_CREATED)
async def create_startup(
    current_user: Annotated[auth.User, Depends(auth.get_current_active_user)],
    name: str = Form(...),
    description: str = Form(...),
    category: str = Form(...),
    stage: str = Form(...),
    location: Optional[str] = Form(default=None),
    website: Optional[str] = Form(default=None),
    tags: Optional[str] = Form(default=None, description="Comma separated tags"),
    logo_file: Optional[UploadFile] = File(default=None),
    db: AsyncClient = Depends(get_firestore_client),
    gcs: storage.Client = Depends(get_gcs_client)
):
    if not name.strip():
        raise HTTPException(status_code=400, detail="Startup name cannot be empty.")
    logo_url = await store_optional_image(gcs, logo_file, folder="logos/startups", username=current_user.username)
    startup_id = f"startup-{uuid.uuid4().hex}"
    startup = Startup(
        id=startup_id,
        name=name.strip(),
        logo=logo_url,
        description=description,
        category=category,
        stage=stage,
        location=location,
        website=website or None,
        tags=[t.strip() for t in (tags or "").split(",") if t.strip()],
        created_at=datetime.datetime.now(datetime.timezone.utc),
    )
    try:
        await db.collection(STARTUPS_COLLECTION).document(startup_id).set(startup.model_dump(exclude={"id"}))
        logger.info(f"User '{current_user.username}' registered startup '{startup_id}' ({startup.name})")
        return startup
    except Exception as e:
        logger.exception(f"Error creating startup '{startup.name}' for user '{current_user.username}': {e}")
        discard_image(gcs, logo_url)
        raise HTTPException(status_code=500, detail="Internal server error while creating startup")
