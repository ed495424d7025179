# In main.py

from datetime import timedelta
from typing import Annotated

from fastapi import Depends, FastAPI, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware

import logging
import AuthAndUser as auth
from cryptography.fernet import Fernet
import config
import secretmanager
from contextlib import asynccontextmanager

from google.cloud import firestore
from google.cloud.firestore import AsyncClient
from google.cloud import storage

from routers import events, investors, posts, resources, startups, users
from services.clients import get_firestore_client

logger = logging.getLogger('uvicorn.error')


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application startup: Initializing resources...")
    try:
        app.state.fernet = Fernet(secretmanager.get_secret(config.FERNET_SECRET_NAME))
        logger.info("Fernet client initialized.")
    except Exception as e:
        logger.error(f"Failed to initialize Fernet: {e}")
        app.state.fernet = None

    try:
        app.state.db = firestore.AsyncClient(project=config.GCP_PROJECT_ID)
        logger.info("Firestore Async client initialized.")
    except Exception as e:
        logger.error(f"Failed to initialize Firestore Async client: {e}")
        app.state.db = None

    try:
        app.state.gcs_client = storage.Client(project=config.GCP_PROJECT_ID)
        logger.info("Google Cloud Storage client initialized.")
    except Exception as e:
        logger.error(f"Failed to initialize GCS client: {e}")
        app.state.gcs_client = None

    yield
    logger.info("Application shutdown: Cleaning up resources...")
    if getattr(app.state, 'db', None):
        try:
            app.state.db.close()
            logger.info("Firestore Async client closed.")
        except Exception as e:
            logger.error(f"Error closing Firestore client: {e}")


app = FastAPI(title="StartHub API", lifespan=lifespan)
app.include_router(users.router)
app.include_router(posts.router)
app.include_router(startups.router)
app.include_router(investors.router)
app.include_router(events.router)
app.include_router(resources.router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(TrustedHostMiddleware, allowed_hosts=config.ALLOWED_HOSTS)


@app.get("/")
def root():
    return {"name": "StartHub API", "status": "ok"}


@app.post("/token")
async def login_for_access_token(
        form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
        db: Annotated[AsyncClient, Depends(get_firestore_client)],
) -> auth.Token:
    user = await auth.authenticate_user(db, form_data.username, form_data.password)
    if not user:
        logger.warning(f"Failed sign-in for {form_data.username}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    access_token_expires = timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES)
    access_token = auth.create_access_token(
        data={"sub": user.username}, expires_delta=access_token_expires
    )
    return auth.Token(access_token=access_token, token_type="bearer")
