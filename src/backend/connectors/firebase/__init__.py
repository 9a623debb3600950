"""Firebase REST connectors (network + auth lives here; record conversion lives in src/backend/adapters/firebase)."""

from .client import FirebaseHttpError
from .config import FirebaseConfig, get_firebase_config, get_identity_config

__all__ = ["FirebaseConfig", "FirebaseHttpError", "get_firebase_config", "get_identity_config"]
