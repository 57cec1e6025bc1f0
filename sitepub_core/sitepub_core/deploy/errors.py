"""Exceptions raised by the deploy orchestrator."""

from __future__ import annotations

from pathlib import Path


class DeployError(Exception):
    """Base class for deploy failures."""


class DeployLockError(DeployError):
    """Raised when the deploy lock is misused or cannot be managed."""


class LockTimeoutError(DeployLockError):
    """Raised when the deploy lock stays held for every allowed attempt."""

    def __init__(self, lock_path: Path, attempts: int) -> None:
        super().__init__(f"Timeout while waiting for deploy lock {lock_path} after {attempts} attempts.")
        self.lock_path = lock_path
        self.attempts = attempts


class PromotionError(DeployError):
    """Raised when a snapshot cannot be copied into the deploy directory."""
