import logging

from fastapi import HTTPException, Request
from google.cloud import storage
from google.cloud.firestore import AsyncClient

logger = logging.getLogger('uvicorn.error')


async def get_firestore_client(request: Request) -> AsyncClient:
    if not hasattr(request.app.state, 'db') or not request.app.state.db:
        logger.error("Firestore client not initialized or unavailable.")
        raise HTTPException(status_code=503, detail="Database service unavailable")
    if not isinstance(request.app.state.db, AsyncClient):
        logger.error("Firestore client is not an AsyncClient.")
        raise HTTPException(status_code=503, detail="Database service misconfigured")
    return request.app.state.db


async def get_gcs_client(request: Request) -> storage.Client:
    if not hasattr(request.app.state, 'gcs_client') or not request.app.state.gcs_client:
        logger.error("GCS client not initialized or unavailable.")
        raise HTTPException(status_code=503, detail="GCS service unavailable")
    return request.app.state.gcs_client
