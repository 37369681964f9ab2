from __future__ import annotations

import asyncio
import logging
import os
from enum import Enum
from typing import Iterable, List, NamedTuple

import aiofiles
import aiofiles.os

from ..utils.errors import FileAccessError
from ..utils.path_sandbox import PathSandbox

logger = logging.getLogger("ai_response.fs")


class EntryKind(str, Enum):
    FILE = "file"
    DIRECTORY = "directory"


class DirectoryEntry(NamedTuple):
    name: str
    kind: EntryKind

    def render(self) -> str:
        marker = "[DIR]" if self.kind == EntryKind.DIRECTORY else "[FILE]"
        return f"{marker} {self.name}"


def _scan(path: str) -> List[DirectoryEntry]:
    with os.scandir(path) as it:
        return [
            DirectoryEntry(entry.name, EntryKind.DIRECTORY if entry.is_dir() else EntryKind.FILE)
            for entry in it
        ]


class FileSystemService:
    """
    Sandboxed filesystem access.

    Every public operation resolves its path through the PathSandbox first,
    so ``PathRejected`` propagates unchanged. ``list_directory``,
    ``read_file``, ``write_file``, ``ensure_directory_exists`` and
    ``prepare_output_path`` raise ``FileAccessError`` on I/O failure.
    ``describe_path`` is the best-effort layer on top: it never raises and
    reports failures inline.
    """

    def __init__(self, sandbox: PathSandbox) -> None:
        self.sandbox = sandbox

    async def list_directory(self, dir_path: str) -> List[DirectoryEntry]:
        valid_path = await self.sandbox.validate(dir_path)
        try:
            return await asyncio.to_thread(_scan, valid_path)
        except OSError as exc:
            raise FileAccessError(dir_path, f"Error listing directory {dir_path}: {exc}") from exc

    async def read_file(self, file_path: str) -> str:
        valid_path = await self.sandbox.validate(file_path)
        try:
            async with aiofiles.open(valid_path, "r", encoding="utf-8") as f:
                return await f.read()
        except (OSError, UnicodeDecodeError) as exc:
            raise FileAccessError(file_path, f"Error reading {file_path}: {exc}") from exc

    async def write_file(self, file_path: str, content: str) -> None:
        valid_path = await self.sandbox.validate(file_path)
        try:
            async with aiofiles.open(valid_path, "w", encoding="utf-8") as f:
                await f.write(content)
        except OSError as exc:
            raise FileAccessError(file_path, f"Error writing {file_path}: {exc}") from exc

    async def ensure_directory_exists(self, dir_path: str) -> str:
        valid_path = await self.sandbox.validate(dir_path)
        try:
            await aiofiles.os.makedirs(valid_path, exist_ok=True)
        except OSError as exc:
            raise FileAccessError(dir_path, f"Error creating directory {dir_path}: {exc}") from exc
        return valid_path

    async def prepare_output_path(self, file_path: str) -> str:
        """Validate an output file path and make sure its parent directory exists."""
        valid_path = await self.sandbox.validate(file_path)
        if await aiofiles.os.path.isdir(valid_path):
            raise FileAccessError(file_path, f"Error preparing file path {file_path}: is a directory")
        await self.ensure_directory_exists(os.path.dirname(valid_path))
        logger.debug(f"Prepared output path {valid_path}")
        return valid_path

    async def describe_path(self, path: str) -> str:
        """Framed text block for a file or directory, or an inline error marker."""
        try:
            valid_path = await self.sandbox.validate(path)
            if await aiofiles.os.path.isdir(valid_path):
                entries = await self.list_directory(valid_path)
                listing = "\n".join(entry.render() for entry in entries)
                return f"\n--- Directory: {path} ---\n{listing}\n--- End of directory: {path} ---\n"
            content = await self.read_file(valid_path)
            return f"\n--- File: {path} ---\n{content}\n--- End of file: {path} ---\n"
        except Exception as exc:
            logger.warning(f"describe_path failed for {path}: {exc}")
            return f"\n--- Error reading {path}: {exc} ---\n"

    async def describe_paths(self, paths: Iterable[str]) -> List[str]:
        return list(await asyncio.gather(*(self.describe_path(p) for p in paths)))
