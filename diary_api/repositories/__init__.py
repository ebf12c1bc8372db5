from .base import DiaryRecord, DiaryStore, EntryRecord
from .memory import InMemoryDiaryStore
from .sql import SqlDiaryStore

__all__ = [
    "DiaryRecord",
    "DiaryStore",
    "EntryRecord",
    "InMemoryDiaryStore",
    "SqlDiaryStore",
]
