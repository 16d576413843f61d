"""Store backend selection."""

from tutor_dashboard.config import Settings
from tutor_dashboard.storage.base import DashboardStore
from tutor_dashboard.storage.local import LocalStore


def create_store(settings: Settings) -> DashboardStore:
    """Build the store backend named by ``settings.store_backend``."""
    if settings.store_backend == "firestore":
        # Imported lazily so the local backend works without Google credentials
        from tutor_dashboard.storage.firestore import FirestoreStore

        return FirestoreStore(
            project=settings.firestore_project,
            database=settings.firestore_database,
        )
    return LocalStore(settings.store_dir)
