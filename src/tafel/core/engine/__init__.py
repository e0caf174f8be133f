from .board import BoardEngine
from .drag import DragController, DragState
from .exceptions import (
    InvariantViolation,
    RemoteError,
    TafelError,
    TerminalRemoteError,
    TransientNetworkError,
    ValidationError,
)
from .pipeline import Mutation, MutationOutcome, MutationPipeline, MutationStatus
from .records import BoardSnapshot, ColumnRecord, ItemRecord
from .remote import DatabaseRemote, RemoteService
from .store import BoardStore

__all__ = [
    "BoardEngine",
    "BoardSnapshot",
    "BoardStore",
    "ColumnRecord",
    "DatabaseRemote",
    "DragController",
    "DragState",
    "InvariantViolation",
    "ItemRecord",
    "Mutation",
    "MutationOutcome",
    "MutationPipeline",
    "MutationStatus",
    "RemoteError",
    "RemoteService",
    "TafelError",
    "TerminalRemoteError",
    "TransientNetworkError",
    "ValidationError",
]
