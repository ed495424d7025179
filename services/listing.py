import logging
from typing import Any, AsyncIterator, Callable, List, Optional, Type, TypeVar

from fastapi import HTTPException
from google.cloud import firestore
from google.cloud.firestore import AsyncClient
from pydantic import BaseModel, ValidationError

logger = logging.getLogger('uvicorn.error')

ALL = "all"

ModelT = TypeVar("ModelT", bound=BaseModel)


def matches_search(query: Optional[str], *values: Optional[str]) -> bool:
    """Case-insensitive substring match against any of ``values``. Empty queries match everything."""
    if not query:
        return True
    needle = query.lower()
    return any(needle in (value or "").lower() for value in values)


def matches_choice(selected: Optional[str], value: Optional[str], ignore_case: bool = False) -> bool:
    if not selected or selected == ALL:
        return True
    if ignore_case:
        return (value or "").lower() == selected.lower()
    return value == selected


def matches_tag(selected: Optional[str], tags: List[str]) -> bool:
    if not selected or selected == ALL:
        return True
    return selected in tags


async def stream_models(
    query: Any,
    model: Type[ModelT],
    label: str,
) -> AsyncIterator[ModelT]:
    """Yields validated models from a Firestore query, logging and skipping rows that do not validate."""
    async for doc in query.stream():
        data = doc.to_dict()
        data['id'] = doc.id
        try:
            yield model(**data)
        except ValidationError as validation_error:
            logger.error(f"Data validation error for {label} doc {doc.id}: {validation_error}. Data: {data}")
            continue


async def list_newest_first(
    db: AsyncClient,
    collection: str,
    model: Type[ModelT],
    keep: Callable[[ModelT], bool],
) -> List[ModelT]:
    query = db.collection(collection).order_by("created_at", direction=firestore.Query.DESCENDING)
    return [item async for item in stream_models(query, model, collection) if keep(item)]


async def get_model_or_404(db: AsyncClient, collection: str, doc_id: str, model: Type[ModelT]) -> ModelT:
    doc = await db.collection(collection).document(doc_id).get()
    if not doc.exists:
        logger.warning(f"{collection} document with ID {doc_id} not found.")
        raise HTTPException(status_code=404, detail=f"{collection[:-1].capitalize()} with id {doc_id} not found")
    data = doc.to_dict()
    data['id'] = doc.id
    return model(**data)
