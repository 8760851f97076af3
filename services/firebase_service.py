"""Firebase service: the Firestore-backed task store."""
import firebase_admin
from firebase_admin import credentials, firestore
import asyncio
import os
from typing import Dict, Any, Optional, List
from models.task import Task
from models.errors import StoreError
from config.config import FIREBASE_CREDENTIALS_FILE, TASKS_COLLECTION
from utils.logging_util import get_logger
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

logger = get_logger("firebase_service")

UPDATABLE_FIELDS = frozenset({'text', 'deadline', 'completed'})

class FirebaseService:
    """Service for handling Firestore operations on the tasks collection."""

    def __init__(self, db: Optional[Any] = None, collection_name: str = TASKS_COLLECTION):
        """Initialize Firebase service.

        Args:
            db: A Firestore client. When None, firebase_admin is initialized
                from the environment and its default client is used.
            collection_name: Name of the collection holding the tasks
        """
        self.db = db
        self.collection_name = collection_name
        if self.db is None:
            self.initialize()
        logger.info(f"Firebase service initialized (collection: {self.collection_name})")

    def initialize(self):
        """Initialize Firebase connection from environment variables."""
        try:
            try:
                app = firebase_admin.get_app()
                logger.info("Reusing existing Firebase app")
            except ValueError:
                app = firebase_admin.initialize_app(self._load_credentials())
            self.db = firestore.client(app)
            logger.info("Firebase connection established")
        except Exception as e:
            logger.error(f"Error initializing Firebase: {str(e)}")
            raise

    def _load_credentials(self) -> credentials.Certificate:
        """Build service account credentials from FIREBASE_* variables or a credentials file."""
        firebase_type = os.getenv('FIREBASE_TYPE')
        firebase_project_id = os.getenv('FIREBASE_PROJECT_ID')
        firebase_private_key_id = os.getenv('FIREBASE_PRIVATE_KEY_ID')
        firebase_private_key = os.getenv('FIREBASE_PRIVATE_KEY')
        firebase_client_email = os.getenv('FIREBASE_CLIENT_EMAIL')

        required = {
            'FIREBASE_TYPE': firebase_type,
            'FIREBASE_PROJECT_ID': firebase_project_id,
            'FIREBASE_PRIVATE_KEY_ID': firebase_private_key_id,
            'FIREBASE_PRIVATE_KEY': firebase_private_key,
            'FIREBASE_CLIENT_EMAIL': firebase_client_email,
        }
        missing_vars = [name for name, value in required.items() if not value]

        if missing_vars:
            if FIREBASE_CREDENTIALS_FILE and os.path.exists(FIREBASE_CREDENTIALS_FILE):
                logger.info(f"Using Firebase credentials file {FIREBASE_CREDENTIALS_FILE}")
                return credentials.Certificate(FIREBASE_CREDENTIALS_FILE)
            raise ValueError(f"Missing required Firebase environment variables: {', '.join(missing_vars)}")

        # Clean up the private key (replace \\n with actual newlines)
        firebase_private_key = firebase_private_key.replace('\\n', '\n')

        firebase_credentials = {
            "type": firebase_type,
            "project_id": firebase_project_id,
            "private_key_id": firebase_private_key_id,
            "private_key": firebase_private_key,
            "client_email": firebase_client_email,
            "client_id": os.getenv('FIREBASE_CLIENT_ID'),
            "auth_uri": os.getenv('FIREBASE_AUTH_URI'),
            "token_uri": os.getenv('FIREBASE_TOKEN_URI'),
            "auth_provider_x509_cert_url": os.getenv('FIREBASE_AUTH_PROVIDER_X509_CERT_URL'),
            "client_x509_cert_url": os.getenv('FIREBASE_CLIENT_X509_CERT_URL'),
            "universe_domain": os.getenv('FIREBASE_UNIVERSE_DOMAIN')
        }
        return credentials.Certificate(firebase_credentials)

    def _collection(self):
        if not self.db:
            raise RuntimeError("Firebase database not initialized")
        return self.db.collection(self.collection_name)

    async def list_tasks(self) -> List[Task]:
        """Load every task in the collection, in the order Firestore returns them."""
        try:
            docs = await asyncio.to_thread(self._collection().get)
        except Exception as e:
            logger.error(f"Error loading tasks: {str(e)}")
            raise StoreError(f"Failed to load tasks: {e}") from e

        tasks = [Task.from_dict(doc.id, doc.to_dict() or {}) for doc in docs]
        logger.debug(f"Loaded {len(tasks)} tasks from Firebase")
        return tasks

    async def create_task(self, text: str, deadline: str) -> str:
        """Insert a new, not completed task and return its document id."""
        payload = {'text': text, 'completed': False, 'deadline': deadline}
        try:
            task_ref = self._collection().document()
            await asyncio.to_thread(task_ref.set, payload)
        except Exception as e:
            logger.error(f"Error creating task: {str(e)}")
            raise StoreError(f"Failed to create task: {e}") from e

        logger.info(f"Created task {task_ref.id}")
        return task_ref.id

    async def update_task_fields(self, task_id: str, fields: Dict[str, Any]) -> None:
        """Merge the given fields into an existing task.

        Only text, deadline and completed may be updated. Firestore raises
        NotFound for a missing document, which surfaces as StoreError.
        """
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update task fields: {', '.join(sorted(unknown))}")
        if not fields:
            return

        try:
            task_ref = self._collection().document(task_id)
            await asyncio.to_thread(task_ref.update, dict(fields))
        except Exception as e:
            logger.error(f"Error updating task {task_id}: {str(e)}")
            raise StoreError(f"Failed to update task {task_id}: {e}") from e

        logger.info(f"Updated task {task_id}: {sorted(fields)}")

    async def delete_task(self, task_id: str) -> None:
        """Delete a task. A missing document is reported as StoreError."""
        try:
            task_ref = self._collection().document(task_id)
            snapshot = await asyncio.to_thread(task_ref.get)
            if not snapshot.exists:
                raise StoreError(f"Task {task_id} does not exist")
            await asyncio.to_thread(task_ref.delete)
        except StoreError as e:
            logger.error(f"Error deleting task {task_id}: {str(e)}")
            raise
        except Exception as e:
            logger.error(f"Error deleting task {task_id}: {str(e)}")
            raise StoreError(f"Failed to delete task {task_id}: {e}") from e

        logger.info(f"Deleted task {task_id}")
