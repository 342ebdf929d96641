"""
Custom exceptions for monover.

Provides a hierarchy of exceptions for the resolution stages. Parsing
components never raise; these cover configuration problems, repository
access failures and per-project resolution failures.
"""


class MonoverError(Exception):
    """Base exception for all monover errors."""

    def __init__(self, message: str, stage: str = None, details: dict = None):
        super().__init__(message)
        self.stage = stage
        self.details = details or {}

    def __str__(self):
        base_msg = super().__str__()
        if self.stage:
            return f"[{self.stage}] {base_msg}"
        return base_msg


class ConfigurationError(MonoverError):
    """Raised when a configuration file or value is invalid."""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message, stage="Configuration", details=details)


class RepositoryAccessError(MonoverError):
    """Raised when repository history cannot be read."""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message, stage="Repository", details=details)


class RepositoryValidationError(RepositoryAccessError):
    """Raised when a path is not a usable git work tree."""

    def __init__(self, path: str, reason: str):
        super().__init__(
            f"Repository validation failed: {reason}",
            details={"path": path, "reason": reason}
        )


class ResolutionError(MonoverError):
    """Raised when the version of a single project cannot be resolved."""

    def __init__(self, project: str, message: str, details: dict = None):
        details = dict(details or {})
        details["project"] = project
        super().__init__(message, stage="Resolution", details=details)
        self.project = project


class ResolutionCancelledError(MonoverError):
    """Raised when a multi-project run is cancelled by the caller."""

    def __init__(self, pending: int = 0):
        super().__init__(
            f"Resolution cancelled with {pending} project(s) pending",
            stage="Resolution",
            details={"pending": pending},
        )
