"""Service layer exports."""

from .file_system import DirectoryEntry, EntryKind, FileSystemService
from .task_dispatch import CliCommand, DispatchAck, TaskDispatcher
from .task_output import TaskNamePattern, TaskOutputAllocator

__all__ = [
    "CliCommand",
    "DirectoryEntry",
    "DispatchAck",
    "EntryKind",
    "FileSystemService",
    "TaskDispatcher",
    "TaskNamePattern",
    "TaskOutputAllocator",
]
