import logging
from typing import Annotated, List, Optional
import datetime
import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from google.cloud.firestore import AsyncClient, FieldFilter

import AuthAndUser as auth
from domain.investors import (
    PLACEHOLDER_AVATAR, PLACEHOLDER_LOGO,
    Investor, InvestorCreate, InvestorDetail, LinkedStartup, Partner, split_interests,
)
from services.clients import get_firestore_client
from services.listing import get_model_or_404, list_newest_first, matches_choice, matches_search

logger = logging.getLogger('uvicorn.error')

INVESTORS_COLLECTION = "investors"
STARTUPS_COLLECTION = "startups"
STARTUP_INVESTORS_COLLECTION = "startup_investors"

router = APIRouter(
    prefix="/investors",
    tags=["investors"]
)


async def fetch_portfolio(db: AsyncClient, investor_id: str) -> List[LinkedStartup]:
    links = db.collection(STARTUP_INVESTORS_COLLECTION).where(filter=FieldFilter("investor_id", "==", investor_id))
    startups = []
    async for link in links.stream():
        startup_id = link.to_dict().get("startup_id")
        if not startup_id:
            continue
        startup_doc = await db.collection(STARTUPS_COLLECTION).document(startup_id).get()
        if not startup_doc.exists:
            logger.warning(f"Investor {investor_id} links to missing startup {startup_id}")
            continue
        data = startup_doc.to_dict()
        startups.append(LinkedStartup(id=startup_doc.id, name=data.get("name", ""), logo=data.get("logo")))
    return startups


@router.get("/", response_model=List[Investor])
async def list_investors(
    q: Optional[str] = None,
    type: Optional[str] = None,
    investment_range: Optional[str] = None,
    db: AsyncClient = Depends(get_firestore_client)
):
    try:
        return await list_newest_first(
            db, INVESTORS_COLLECTION, Investor,
            lambda i: matches_search(q, i.name)
            and matches_choice(type, i.type)
            and matches_choice(investment_range, i.investmentRange),
        )
    except Exception as e:
        logger.exception(f"Error retrieving investors: {e}")
        raise HTTPException(status_code=500, detail="Internal server error while fetching investors")


@router.get("/{investor_id}", response_model=InvestorDetail)
async def get_investor(
    investor_id: str,
    db: AsyncClient = Depends(get_firestore_client)
):
    try:
        investor = await get_model_or_404(db, INVESTORS_COLLECTION, investor_id, Investor)
        startups = await fetch_portfolio(db, investor_id)
        return InvestorDetail(**investor.model_dump(), startups=startups)
    except HTTPException as http_exc:
        raise http_exc
    except Exception as e:
        logger.exception(f"Error retrieving investor {investor_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error while fetching investor")


@router.post("/", response_model=Investor, status_code=status.HTTP_201_CREATED)
async def create_investor(
    investor_in: InvestorCreate,
    current_user: Annotated[auth.User, Depends(auth.get_current_active_user)],
    db: AsyncClient = Depends(get_firestore_client)
):
    partners = [
        Partner(name=p.name.strip(), avatar=p.avatar or PLACEHOLDER_AVATAR)
        for p in investor_in.partners if p.name.strip()
    ]
    now = datetime.datetime.now(datetime.timezone.utc)
    investor_id = f"investor-{uuid.uuid4().hex}"
    investor = Investor(
        id=investor_id,
        name=investor_in.name.strip(),
        logo=PLACEHOLDER_LOGO,
        avatar=PLACEHOLDER_AVATAR,
        description=investor_in.description,
        type=investor_in.type,
        investmentRange=investor_in.investmentRange,
        location=investor_in.location,
        interests=split_interests(investor_in.interests),
        partners=partners or None,
        created_at=now,
        updated_at=now,
    )
    try:
        await db.collection(INVESTORS_COLLECTION).document(investor_id).set(investor.model_dump(exclude={"id"}))
        logger.info(f"User '{current_user.username}' registered investor '{investor_id}' ({investor.name})")
        return investor
    except Exception as e:
        logger.exception(f"Error creating investor '{investor.name}' for user '{current_user.username}': {e}")
        raise HTTPException(status_code=500, detail="Internal server error while creating investor")
