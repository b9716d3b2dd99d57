"""
Exception taxonomy for the bootstrap.

Every error here is fatal: the entry point logs it and exits nonzero,
leaving restarts to the container orchestrator.
"""
from pathlib import Path
from typing import Optional


class BootstrapError(Exception):
    """Base class for all bootstrap failures."""
    pass


class ConfigError(BootstrapError):
    """Raised when the configuration file or an environment value is invalid."""
    pass


class AccountNotFoundError(BootstrapError):
    """Raised when the target user or group does not exist in the image."""

    def __init__(self, kind: str, name: str):
        self.kind = kind
        self.name = name
        super().__init__(f"Target {kind} '{name}' does not exist in this image")


class OwnershipRepairError(BootstrapError):
    """Raised when the recursive ownership repair cannot complete."""

    def __init__(self, path: Path, cause: Optional[OSError] = None):
        self.path = Path(path)
        self.cause = cause
        if cause is None:
            detail = "unknown error"
        else:
            detail = cause.strerror or str(cause)
        super().__init__(f"Cannot change ownership of {self.path}: {detail}")


class DelegateLaunchError(BootstrapError):
    """Raised when the delegate executable cannot be started."""

    def __init__(self, path: Path, reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Cannot launch {self.path}: {reason}")
