import os

GCP_PROJECT_ID = os.getenv("STARTHUB_GCP_PROJECT", "starthub-prod")

JWT_SECRET_NAME = os.getenv(
    "STARTHUB_JWT_SECRET",
    f"projects/{GCP_PROJECT_ID}/secrets/starthub-auth-key/versions/latest",
)
FERNET_SECRET_NAME = os.getenv(
    "STARTHUB_FERNET_SECRET",
    f"projects/{GCP_PROJECT_ID}/secrets/starthub-fernet-key/versions/latest",
)
SENDGRID_SECRET_NAME = os.getenv(
    "STARTHUB_SENDGRID_SECRET",
    f"projects/{GCP_PROJECT_ID}/secrets/sendgrid-api-key/versions/latest",
)

GCS_BUCKET_NAME = os.getenv("STARTHUB_GCS_BUCKET", "starthub-media")

ALLOWED_HOSTS = [
    h.strip() for h in os.getenv(
        "STARTHUB_ALLOWED_HOSTS", "starthub.app,*.starthub.app,localhost,127.0.0.1"
    ).split(",") if h.strip()
]
CORS_ORIGINS = [
    o.strip() for o in os.getenv("STARTHUB_CORS_ORIGINS", "https://starthub.app").split(",") if o.strip()
]

ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("STARTHUB_TOKEN_MINUTES", "150"))

SITE_URL = os.getenv("STARTHUB_SITE_URL", "https://starthub.app")
EMAIL_SENDER = os.getenv("STARTHUB_EMAIL_SENDER", "hello@starthub.app")
