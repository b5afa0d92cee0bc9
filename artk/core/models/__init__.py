"""
Domain models — pydantic types for the installer.

All models are re-exported here for convenient access:

    from artk.core.models import ArtkContext, LockFile, RollbackResult, VariantId
"""

from artk.core.models.context import (
    ArtkContext,
    CamelModel,
    InstalledEnvironment,
    InstallMethod,
    UpgradeRecord,
)
from artk.core.models.lock import AcquireResult, LockFile, LockInfo, LockOperation
from artk.core.models.log_entry import InstallLogEntry, LogLevel, OperationType
from artk.core.models.results import (
    BackupResult,
    CompatibilityResult,
    CopyResult,
    DetectionResult,
    EnvironmentChange,
    RestoreResult,
    RollbackCheck,
    RollbackResult,
)
from artk.core.models.variant import ModuleSystem, VariantDefinition, VariantId

__all__ = [
    # context.py
    "ArtkContext",
    "CamelModel",
    "InstalledEnvironment",
    "InstallMethod",
    "UpgradeRecord",
    # lock.py
    "AcquireResult",
    "LockFile",
    "LockInfo",
    "LockOperation",
    # log_entry.py
    "InstallLogEntry",
    "LogLevel",
    "OperationType",
    # results.py
    "BackupResult",
    "CompatibilityResult",
    "CopyResult",
    "DetectionResult",
    "EnvironmentChange",
    "RestoreResult",
    "RollbackCheck",
    "RollbackResult",
    # variant.py
    "ModuleSystem",
    "VariantDefinition",
    "VariantId",
]
