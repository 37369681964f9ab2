"""
Path Sandbox - allowlist boundary for every filesystem access.

Requested paths are expanded (``~``), made absolute against the configured
working directory and compared case-insensitively against the allowed roots.
Paths that exist are returned in their realpath form; paths that do not exist
yet are returned in absolute form so callers can create them.

The realpath is always re-checked, so a symlink inside a root that points
somewhere else is rejected, including dangling links whose target would be
created by a later write.
"""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional, Tuple

import aiofiles.os

from .errors import PathRejected

logger = logging.getLogger("ai_response.sandbox")


def _comparable(path: str) -> str:
    """Case-folded form with one trailing separator stripped."""
    folded = os.path.normcase(path).casefold()
    if folded.endswith(os.sep):
        folded = folded[:-1]
    return folded


@dataclass(frozen=True)
class AllowedRootSet:
    """Ordered, immutable set of absolute directories access is limited to."""

    roots: Tuple[str, ...]

    def __post_init__(self) -> None:
        if not self.roots:
            raise ValueError("AllowedRootSet needs at least one root")
        for root in self.roots:
            if not os.path.isabs(root):
                raise ValueError(f"Allowed root must be absolute: {root}")

    @classmethod
    def from_paths(cls, paths: Iterable[str]) -> "AllowedRootSet":
        # A root reached through a symlink is kept in both forms, otherwise
        # realpaths of its children would never match it.
        ordered: list[str] = []
        for path in paths:
            absolute = os.path.abspath(path)
            for candidate in (absolute, os.path.realpath(absolute)):
                if candidate not in ordered:
                    ordered.append(candidate)
        return cls(tuple(ordered))

    @classmethod
    def default(cls, home: str, cwd: Optional[str] = None) -> "AllowedRootSet":
        return cls.from_paths([home, cwd or os.getcwd()])

    def __iter__(self) -> Iterator[str]:
        return iter(self.roots)

    def __len__(self) -> int:
        return len(self.roots)

    def contains(self, absolute_path: str) -> bool:
        candidate = _comparable(absolute_path)
        for root in self.roots:
            normalized_root = _comparable(root)
            if candidate == normalized_root:
                return True
            if candidate.startswith(normalized_root + os.sep):
                return True
        return False


class PathSandbox:
    """Validates and canonicalizes user supplied paths against an AllowedRootSet."""

    def __init__(self, roots: AllowedRootSet, *, home: str, cwd: Optional[str] = None) -> None:
        self.roots = roots
        self.home = home
        self.cwd = cwd or os.getcwd()

    def expand_home(self, path: str) -> str:
        if path == "~":
            return self.home
        if path.startswith("~/"):
            return os.path.join(self.home, path[2:])
        return path

    def absolute(self, path: str) -> str:
        expanded = self.expand_home(path)
        if not os.path.isabs(expanded):
            expanded = os.path.join(self.cwd, expanded)
        return os.path.normpath(expanded)

    def is_allowed(self, path: str) -> bool:
        return self.roots.contains(self.absolute(path))

    def _reject(self, requested_path: str, resolved: str) -> PathRejected:
        logger.warning(f"Path rejected: {requested_path!r} -> {resolved}")
        allowed = ", ".join(self.roots)
        return PathRejected(
            requested_path,
            f"Path not allowed: {requested_path}. Must be within one of the configured roots: {allowed}",
        )

    async def validate(self, requested_path: str) -> str:
        if "\x00" in requested_path:
            raise self._reject(requested_path, "<null byte>")

        absolute = self.absolute(requested_path)
        if not self.roots.contains(absolute):
            raise self._reject(requested_path, absolute)

        real = await asyncio.to_thread(os.path.realpath, absolute)
        if not self.roots.contains(real):
            raise self._reject(requested_path, real)

        if await aiofiles.os.path.exists(absolute):
            return real
        return absolute
