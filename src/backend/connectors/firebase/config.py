from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv


load_dotenv()

IDENTITY_TOOLKIT_BASE_URL = "https://identitytoolkit.googleapis.com/v1"


@dataclass(frozen=True)
class FirebaseConfig:
    database_url: str
    # Database secret or ID token passed as the `auth` query parameter; empty for open test databases.
    auth_token: str
    project_id: str
    # OAuth2 bearer token for the Identity Toolkit admin endpoints.
    access_token: str
    identity_base_url: str = IDENTITY_TOOLKIT_BASE_URL
    timeout_seconds: int = 30
    max_retries: int = 3


def get_firebase_config() -> FirebaseConfig:
    """
    Load Firebase connector configuration from environment variables.

    Reads:
      FIREBASE_DATABASE_URL (required), FIREBASE_AUTH_TOKEN,
      FIREBASE_PROJECT_ID, FIREBASE_ACCESS_TOKEN, FIREBASE_TIMEOUT_SECONDS
    """
    return FirebaseConfig(
        database_url=_require_env("FIREBASE_DATABASE_URL").rstrip("/"),
        auth_token=os.getenv("FIREBASE_AUTH_TOKEN", "").strip(),
        project_id=os.getenv("FIREBASE_PROJECT_ID", "").strip(),
        access_token=os.getenv("FIREBASE_ACCESS_TOKEN", "").strip(),
        timeout_seconds=int(os.getenv("FIREBASE_TIMEOUT_SECONDS", "30")),
    )


def get_identity_config() -> FirebaseConfig:
    """Like `get_firebase_config`, but the admin identity endpoints need a project and bearer token."""
    config = get_firebase_config()
    if not config.project_id:
        raise ValueError("Missing required environment variable: FIREBASE_PROJECT_ID")
    if not config.access_token:
        raise ValueError("Missing required environment variable: FIREBASE_ACCESS_TOKEN")
    return config


def _require_env(name: str) -> str:
    value = os.getenv(name, "").strip()
    if not value:
        raise ValueError(f"Missing required environment variable: {name}")
    return value
