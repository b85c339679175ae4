"""
Firebase service for Django - Firestore integration for call signaling.

Firestore Collections:
- users/{uid}: Contains fcmToken, voipToken, platform and display fields
- calls/{key}: Call records keyed by channel name (or call id, see CALL_RECORD_KEY)
"""
import json
import os
import logging
from typing import Optional, Dict, Any

from django.conf import settings

from .errors import DependencyError

logger = logging.getLogger("signaling")

# Firebase Admin initialization
_firebase_app = None
_firestore_client = None
_firebase_init_attempted = False


def get_firebase_app():
    """Get or initialize Firebase Admin app"""
    global _firebase_app, _firebase_init_attempted

    if _firebase_app is not None:
        return _firebase_app

    if _firebase_init_attempted:
        # Already tried and failed
        return None

    _firebase_init_attempted = True

    import firebase_admin
    from firebase_admin import credentials

    use_emulator = os.environ.get("FIREBASE_USE_EMULATOR", "false").lower() == "true"
    project_id = os.environ.get("FIREBASE_PROJECT_ID")

    logger.info(f"Firebase init: use_emulator={use_emulator}, project_id={project_id}")

    if use_emulator:
        firestore_host = os.environ.get("FIRESTORE_EMULATOR_HOST", "localhost:8080")
        os.environ["FIRESTORE_EMULATOR_HOST"] = firestore_host

        try:
            _firebase_app = firebase_admin.initialize_app(
                credential=None,
                options={"projectId": project_id or "demo-project"},
            )
            logger.info(f"Firebase Admin initialized with EMULATOR (Firestore: {firestore_host})")
        except ValueError:
            # Already initialized
            _firebase_app = firebase_admin.get_app()
        return _firebase_app

    service_account_json = os.environ.get("FIREBASE_SERVICE_ACCOUNT")
    service_account_path = os.environ.get("FIREBASE_SERVICE_ACCOUNT_PATH")

    cred = None
    if service_account_json:
        try:
            cred = credentials.Certificate(json.loads(service_account_json))
            logger.info("Using FIREBASE_SERVICE_ACCOUNT env var")
        except json.JSONDecodeError as e:
            logger.error(f"Invalid FIREBASE_SERVICE_ACCOUNT JSON: {e}")
    elif service_account_path and os.path.exists(service_account_path):
        cred = credentials.Certificate(service_account_path)
        logger.info(f"Using service account from {service_account_path}")

    if cred is None:
        logger.warning("Firebase credentials not found - Firestore and FCM are unavailable")
        return None

    try:
        _firebase_app = firebase_admin.initialize_app(cred)
        logger.info("Firebase Admin initialized (production)")
    except ValueError:
        _firebase_app = firebase_admin.get_app()

    return _firebase_app


def get_firestore():
    """Get Firestore client"""
    global _firestore_client

    if _firestore_client is not None:
        return _firestore_client

    app = get_firebase_app()
    if app is None:
        return None

    from firebase_admin import firestore
    _firestore_client = firestore.client(app)
    return _firestore_client


class FirestoreService:
    """Service class for Firestore operations"""

    def __init__(self, db=None, users_collection=None, calls_collection=None):
        self._db = db
        self.users_collection = users_collection or settings.USERS_COLLECTION
        self.calls_collection = calls_collection or settings.CALLS_COLLECTION

    @property
    def db(self):
        """Lazy initialization of Firestore client"""
        if self._db is None:
            self._db = get_firestore()
        return self._db

    def is_available(self) -> bool:
        """Check if Firestore is available"""
        return self.db is not None

    # =========================================================================
    # User Operations
    # =========================================================================

    def get_user(self, user_id: str) -> Optional[Dict[str, Any]]:
        """
        Get a user document by key.

        Expected document structure at users/{uid}:
        {
            "fcmToken": "fcm_registration_token",
            "voipToken": "ios_voip_token",
            "platform": "ios" | "android",
            "name": "...", "imageUrl": "...", "username": "...",
        }

        Returns:
            The document data (with ``id`` set to the key) or None if absent
        """
        try:
            doc = self.db.collection(self.users_collection).document(user_id).get()
        except Exception as e:
            logger.error(f"Error getting user {user_id}: {e}")
            raise DependencyError("failed_to_read_recipient") from e

        if not doc.exists:
            logger.info(f"User document not found: {user_id}")
            return None
        return {"id": doc.id, **(doc.to_dict() or {})}

    def find_user_by_field(self, field: str, value: str) -> Optional[Dict[str, Any]]:
        """Return the first user whose ``field`` equals ``value``, or None."""
        try:
            query = (
                self.db.collection(self.users_collection)
                .where(field, "==", value)
                .limit(1)
            )
            docs = list(query.stream())
        except Exception as e:
            logger.error(f"Error querying users where {field}=={value}: {e}")
            raise DependencyError("failed_to_read_recipient") from e

        if not docs:
            logger.info(f"No user with {field}={value}")
            return None
        doc = docs[0]
        return {"id": doc.id, **(doc.to_dict() or {})}

    # =========================================================================
    # Call Record Operations
    # =========================================================================

    def set_call_record(self, key: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Overwrite calls/{key} with ``data``. Existing fields are not merged.
        """
        try:
            self.db.collection(self.calls_collection).document(key).set(data)
        except Exception as e:
            logger.error(f"Error writing call record {key}: {e}")
            raise DependencyError("failed_to_create_call_record") from e

        logger.info(f"Wrote call record: {self.calls_collection}/{key}")
        return data
