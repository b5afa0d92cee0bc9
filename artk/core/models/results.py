"""
Transient result models.

These are returned in-band by detection and the best-effort lifecycle
services.  They are never persisted.  Like adapter receipts, the
best-effort ones never travel as exceptions: failure lives in the model.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, model_validator

from artk.core.models.variant import ModuleSystem, VariantId


class DetectionResult(BaseModel):
    """Host facts plus the variant chosen for them."""

    node_version: int = 0
    node_version_full: str = ""
    module_system: ModuleSystem = ModuleSystem.CJS
    selected_variant: VariantId | None = None
    success: bool = False
    error: str | None = None
    override_used: bool = False


class CompatibilityResult(BaseModel):
    """Whether a variant runs on a Node.js major version."""

    valid: bool
    error: str | None = None


class EnvironmentChange(BaseModel):
    """Drift between the recorded installation and the current host."""

    changed: bool
    reason: str | None = None
    previous_node_version: int | None = None
    current_node_version: int | None = None
    previous_variant: VariantId | None = None
    current_variant: VariantId | None = None


class RollbackCheck(BaseModel):
    """Whether a previous run left a partial installation behind."""

    needed: bool
    reason: str | None = None


class RollbackResult(BaseModel):
    """Outcome of a best-effort teardown.

    ``success`` is derived: it is False exactly when ``errors`` is non-empty.
    """

    success: bool = True
    removed_directories: list[str] = Field(default_factory=list)
    removed_files: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _derive_success(self) -> RollbackResult:
        self.success = not self.errors
        return self


class BackupResult(BaseModel):
    """Outcome of ``create_backup``."""

    success: bool
    backup_path: str | None = None
    copied_files: list[str] = Field(default_factory=list)
    error: str | None = None


class RestoreResult(BaseModel):
    """Outcome of ``restore_from_backup``."""

    success: bool
    restored_files: list[str] = Field(default_factory=list)
    error: str | None = None


class CopyResult(BaseModel):
    """Outcome of copying a variant's files into the vendor directories."""

    success: bool
    copied_files: int = 0
    warnings: list[str] = Field(default_factory=list)
    error: str | None = None
