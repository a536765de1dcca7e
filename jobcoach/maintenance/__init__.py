from .backup import DEFAULT_BACKUP_CONFIG, BackupConfig, build_backup_snapshot, prune_backups, write_backup
from .health import DatabaseHealthCheck, HealthReport
from .retention import CleanupResult, DatabaseMaintenance, MaintenanceReport, RetentionPolicy

__all__ = [
    "BackupConfig",
    "DEFAULT_BACKUP_CONFIG",
    "build_backup_snapshot",
    "write_backup",
    "prune_backups",
    "DatabaseHealthCheck",
    "HealthReport",
    "CleanupResult",
    "DatabaseMaintenance",
    "MaintenanceReport",
    "RetentionPolicy",
]
