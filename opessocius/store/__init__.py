"""Document storage and the per-collection repositories built on it."""

from opessocius.store.documents import SERVER_TIMESTAMP, DocumentNotFound, DocumentStore
from opessocius.store.repositories import (
    CommunityMessageRepository,
    DailyTradingRepository,
    LearningUserRepository,
    ModuleRepository,
    UserRepository,
)
from opessocius.store.timestamps import from_timestamp, to_timestamp

__all__ = [
    "SERVER_TIMESTAMP",
    "DocumentNotFound",
    "DocumentStore",
    "CommunityMessageRepository",
    "DailyTradingRepository",
    "LearningUserRepository",
    "ModuleRepository",
    "UserRepository",
    "from_timestamp",
    "to_timestamp",
]
