import logging
from typing import Annotated, List, Optional
import datetime
import uuid

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from google.cloud import storage
from google.cloud.firestore import AsyncClient

import AuthAndUser as auth
from domain.events import Event
from services.clients import get_firestore_client, get_gcs_client
from services.listing import get_model_or_404, list_newest_first, matches_choice, matches_search
from services.storage import discard_image, store_optional_image

logger = logging.getLogger('uvicorn.error')

EVENTS_COLLECTION = "events"

router = APIRouter(
    prefix="/events",
    tags=["events"]
)


def is_upcoming(event: Event, upcoming_from: Optional[datetime.date]) -> bool:
    if upcoming_from is None:
        return True
    start = event.start_date()
    return start is not None and start >= upcoming_from


async def filtered_events(
    db: AsyncClient,
    q: Optional[str],
    type: Optional[str],
    category: Optional[str],
    upcoming_from: Optional[datetime.date],
) -> List[Event]:
    return await list_newest_first(
        db, EVENTS_COLLECTION, Event,
        lambda e: matches_search(q, e.title, e.description)
        and matches_choice(type, e.type, ignore_case=True)
        and matches_choice(category, e.category, ignore_case=True)
        and is_upcoming(e, upcoming_from),
    )


@router.get("/", response_model=List[Event])
async def list_events(
    q: Optional[str] = None,
    type: Optional[str] = None,
    category: Optional[str] = None,
    upcoming_from: Optional[datetime.date] = None,
    db: AsyncClient = Depends(get_firestore_client)
):
    try:
        return await filtered_events(db, q, type, category, upcoming_from)
    except Exception as e:
        logger.exception(f"Error retrieving events: {e}")
        raise HTTPException(status_code=500, detail="Internal server error while fetching events")


@router.get("/featured", response_model=List[Event])
async def list_featured_events(
    limit: int = Query(default=3, ge=1, le=20),
    q: Optional[str] = None,
    type: Optional[str] = None,
    category: Optional[str] = None,
    db: AsyncClient = Depends(get_firestore_client)
):
    """Most attended events first."""
    try:
        events = await filtered_events(db, q, type, category, None)
    except Exception as e:
        logger.exception(f"Error retrieving featured events: {e}")
        raise HTTPException(status_code=500, detail="Internal server error while fetching events")
    return sorted(events, key=lambda e: e.attendees, reverse=True)[:limit]


@router.get("/{event_id}", response_model=Event)
async def get_event(
    event_id: str,
    db: AsyncClient = Depends(get_firestore_client)
):
    try:
        return await get_model_or_404(db, EVENTS_COLLECTION, event_id, Event)
    except HTTPException as http_exc:
        raise http_exc
    except Exception as e:
        logger.exception(f"Error retrieving event {event_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error while fetching event")


@router.post("/", response_model=Event, status_code=status.HTTP_201_CREATED)
async def create_event(
    current_user: Annotated[auth.User, Depends(auth.get_current_active_user)],
    title: str = Form(...),
    description: str = Form(...),
    date: str = Form(..., description="Start date, or 'start - end' for multi-day events"),
    location: str = Form(...),
    type: str = Form(...),
    category: str = Form(...),
    time: Optional[str] = Form(default=None),
    attendees: int = Form(default=0, ge=0),
    organizer: Optional[str] = Form(default=None),
    image_file: Optional[UploadFile] = File(default=None),
    db: AsyncClient = Depends(get_firestore_client),
    gcs: storage.Client = Depends(get_gcs_client)
):
    image_url = await store_optional_image(gcs, image_file, folder="logos/events", username=current_user.username)
    now = datetime.datetime.now(datetime.timezone.utc)
    event_id = f"event-{uuid.uuid4().hex}"
    event = Event(
        id=event_id,
        title=title,
        description=description,
        date=date,
        time=time,
        location=location,
        type=type,
        category=category,
        attendees=attendees,
        organizer=organizer,
        image=image_url,
        created_at=now,
        updated_at=now,
    )
    try:
        await db.collection(EVENTS_COLLECTION).document(event_id).set(event.model_dump(exclude={"id"}))
        logger.info(f"User '{current_user.username}' created event '{event_id}' ({event.title})")
        return event
    except Exception as e:
        logger.exception(f"Error creating event '{title}' for user '{current_user.username}': {e}")
        discard_image(gcs, image_url)
        raise HTTPException(status_code=500, detail="Internal server error while creating event")
