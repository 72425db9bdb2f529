"""Error taxonomy shared by the service and the sync client."""
from __future__ import annotations


class WorkforceError(Exception):
    """Base class for every domain error raised by the project."""


class NotFoundError(WorkforceError):
    """Raised when a requested record does not exist for the caller."""


class PermissionDenied(WorkforceError):
    """Raised when the caller's role does not allow the operation."""


class ChannelConnectionError(WorkforceError):
    """Raised internally when the event channel cannot be opened.

    Callers never see it: the channel degrades to polling-only instead.
    """


class MalformedEventError(WorkforceError):
    """An inbound frame could not be parsed into a domain event."""

    def __init__(self, message: str, raw: object = None) -> None:
        super().__init__(message)
        self.raw = raw


class ClassificationAmbiguous(WorkforceError):
    """Filename classification is not confident enough to auto-assign."""

    def __init__(self, file_name: str, reason: str) -> None:
        super().__init__(f"{file_name}: {reason}")
        self.file_name = file_name
        self.reason = reason


class PreconditionFailed(WorkforceError):
    """Signature attempted before viewing, or on an already accepted document."""


class MutationError(WorkforceError):
    """A user-initiated mutation failed; the message is safe to show in a toast."""

    def __init__(self, title: str, description: str, *, status_code: int | None = None) -> None:
        super().__init__(f"{title}: {description}")
        self.title = title
        self.description = description
        self.status_code = status_code


class PartialBatchFailure(WorkforceError):
    """Some documents of an undo batch could not be deleted."""

    def __init__(self, deleted: list[int], failed: dict[int, str]) -> None:
        total = len(deleted) + len(failed)
        super().__init__(f"Se han eliminado {len(deleted)} de {total} documentos")
        self.deleted = deleted
        self.failed = failed
