"""Infrastructure layer exports."""

from .activity import ActivityRepository, InMemoryActivityRepository
from .broadcaster import ChannelConnection, EventBroadcaster, EventPublisher, get_broadcaster
from .directory import DirectoryRepository, InMemoryDirectoryRepository
from .documents import DocumentRepository, InMemoryDocumentRepository

__all__ = [
    "ActivityRepository",
    "ChannelConnection",
    "DirectoryRepository",
    "DocumentRepository",
    "EventBroadcaster",
    "EventPublisher",
    "InMemoryActivityRepository",
    "InMemoryDirectoryRepository",
    "InMemoryDocumentRepository",
    "get_broadcaster",
]
