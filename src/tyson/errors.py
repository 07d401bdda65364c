"""Domain errors for tyson."""

from typing import Optional

from tyson.models import Stage


class TysonError(RuntimeError):
    """Raised when a run cannot continue safely."""


class ConfigError(TysonError):
    """Invalid settings, config file or credentials file."""


class AuthError(TysonError):
    """The service principal could not obtain an access token."""


class RetrievalError(TysonError):
    """A virtual machine listing could not be fetched completely."""


class NoMatchError(TysonError):
    """No virtual machine in scope matches the selection pattern."""


class TeardownError(TysonError):
    """A teardown stage failed. ``stage`` names the stage that failed."""

    stage: Optional[Stage] = None


class ResolutionError(TeardownError):
    stage = Stage.RESOLVE


class LocatorParseError(TeardownError):
    stage = Stage.LOCATE_DISK


class StorageAccessError(TeardownError):
    stage = Stage.VERIFY_STORAGE


class InstanceDeletionError(TeardownError):
    stage = Stage.DELETE_INSTANCE


class BlobDeletionError(TeardownError):
    stage = Stage.DELETE_BLOB
