"""
Task output naming.

Background task results live in one output directory as ``<prefix><n><ext>``
(``task-0.txt``, ``task-1.txt`` ...). There is no index file; the directory
listing is the only record of which numbers are taken.

``allocate`` proposes ``prefix + count + ext`` from a directory scan and
reserves nothing, so two callers looking at the same snapshot get the same
name. ``reserve`` claims the name with an exclusive create and moves on to
the next number when it is already taken; dispatch uses ``reserve``.
"""

from __future__ import annotations

import asyncio
import errno
import logging
import os
import re
from dataclasses import dataclass, field
from typing import List, Pattern

logger = logging.getLogger("ai_response.dispatch")


@dataclass(frozen=True)
class TaskNamePattern:
    prefix: str = "task-"
    extension: str = ".txt"
    _regex: Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if os.sep in self.prefix or os.sep in self.extension:
            raise ValueError("Task name prefix and extension must not contain path separators")
        regex = re.compile(rf"^{re.escape(self.prefix)}(\d+){re.escape(self.extension)}$")
        object.__setattr__(self, "_regex", regex)

    def matches(self, name: str) -> bool:
        return self._regex.match(name) is not None

    def name_for(self, index: int) -> str:
        return f"{self.prefix}{index}{self.extension}"


def _list_names(directory: str) -> List[str]:
    try:
        return os.listdir(directory)
    except FileNotFoundError:
        return []


def _claim(path: str) -> bool:
    try:
        fd = os.open(path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
    except FileExistsError:
        return False
    os.close(fd)
    return True


class TaskOutputAllocator:
    def __init__(self, max_attempts: int = 1000) -> None:
        self.max_attempts = max_attempts

    async def count(self, output_directory: str, pattern: TaskNamePattern) -> int:
        names = await asyncio.to_thread(_list_names, output_directory)
        return sum(1 for name in names if pattern.matches(name))

    async def allocate(self, output_directory: str, pattern: TaskNamePattern) -> str:
        return pattern.name_for(await self.count(output_directory, pattern))

    async def reserve(self, output_directory: str, pattern: TaskNamePattern) -> str:
        """Claim the next free task file name; the empty file exists on return."""
        index = await self.count(output_directory, pattern)
        for _ in range(self.max_attempts):
            name = pattern.name_for(index)
            if await asyncio.to_thread(_claim, os.path.join(output_directory, name)):
                logger.debug(f"Reserved {name} in {output_directory}")
                return name
            index += 1
        raise FileExistsError(
            errno.EEXIST,
            f"No free task name after {self.max_attempts} attempts",
            output_directory,
        )
