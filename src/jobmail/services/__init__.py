from .doctor import run_doctor_checks
from .exporter import export_snapshot
from .refresh import RefreshError, RefreshResult, RefreshService, restore_snapshot

__all__ = ["RefreshError", "RefreshResult", "RefreshService", "export_snapshot", "restore_snapshot", "run_doctor_checks"]
