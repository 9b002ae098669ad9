from .migrations import apply_migrations, applied_versions, connect_db, pending_migrations
from .repository import SnapshotRepository

__all__ = ["connect_db", "apply_migrations", "applied_versions", "pending_migrations", "SnapshotRepository"]
