"""
Task Dispatcher - starts the external CLI detached from this process.

The command runs through a shell as
``nohup <cli> <flag> '<prompt>' > '<output>' 2>&1 &`` in its own session, so
it outlives the server. ``dispatch_detached`` returns as soon as the
launching shell has exited: a ``DispatchAck`` means "started", nothing more.
There is no callback, status or cancel handle; the only way to observe the
result is to read the output file.
"""

from __future__ import annotations

import asyncio
import logging
import os
import shlex
import shutil
from dataclasses import dataclass, field
from typing import Optional, Tuple

import aiofiles.os

from ..utils.errors import DispatchError, ToolError
from .file_system import FileSystemService
from .task_output import TaskNamePattern, TaskOutputAllocator

logger = logging.getLogger("ai_response.dispatch")


@dataclass(frozen=True)
class CliCommand:
    executable: str = "claude"
    prompt_flag: str = "-p"
    extra_args: Tuple[str, ...] = field(default_factory=tuple)
    output_format: Optional[str] = None

    def build(self, prompt: str, output_path: str) -> str:
        """Shell command line; every interpolated value goes through shlex.quote."""
        parts = ["nohup", shlex.quote(self.executable)]
        parts.extend(shlex.quote(arg) for arg in self.extra_args)
        parts.extend([shlex.quote(self.prompt_flag), shlex.quote(prompt)])
        if self.output_format:
            parts.extend(["--output-format", shlex.quote(self.output_format)])
        parts.extend([">", shlex.quote(output_path), "2>&1", "&"])
        return " ".join(parts)


@dataclass(frozen=True)
class DispatchAck:
    output_path: str
    command: str
    launcher_pid: Optional[int] = None


class TaskDispatcher:
    def __init__(
        self,
        file_system: FileSystemService,
        allocator: TaskOutputAllocator,
        command: CliCommand,
        *,
        shell: str = "/bin/sh",
    ) -> None:
        self.file_system = file_system
        self.allocator = allocator
        self.command = command
        self.shell = shell

    def _require_executable(self, expected_output: str) -> None:
        if shutil.which(self.command.executable) is None:
            raise DispatchError(
                f"Executable not found on PATH: {self.command.executable}",
                expected_output,
            )

    async def dispatch_detached(self, prompt: str, output_target: str) -> DispatchAck:
        self._require_executable(output_target)
        try:
            output_path = await self.file_system.prepare_output_path(output_target)
        except ToolError as exc:
            raise DispatchError(exc.message, output_target) from exc

        command_line = self.command.build(prompt, output_path)

        try:
            launcher = await asyncio.create_subprocess_exec(
                self.shell,
                "-c",
                command_line,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
                start_new_session=True,
            )
            _, stderr = await launcher.communicate()
        except OSError as exc:
            raise DispatchError(f"Failed to start {self.command.executable}: {exc}", output_path) from exc

        if launcher.returncode != 0:
            detail = stderr.decode("utf-8", errors="replace").strip()
            raise DispatchError(
                f"Launcher shell exited with code {launcher.returncode}: {detail}",
                output_path,
            )

        logger.info(f"Dispatched {self.command.executable} -> {output_path}")
        return DispatchAck(output_path=output_path, command=command_line, launcher_pid=launcher.pid)

    async def dispatch_to_directory(
        self,
        prompt: str,
        output_directory: str,
        pattern: TaskNamePattern,
    ) -> DispatchAck:
        """Reserve the next task file in ``output_directory`` and dispatch into it.

        The reserved file is removed again when the launch fails.
        """
        self._require_executable(output_directory)
        try:
            directory = await self.file_system.ensure_directory_exists(output_directory)
        except ToolError as exc:
            raise DispatchError(exc.message, output_directory) from exc

        try:
            name = await self.allocator.reserve(directory, pattern)
        except OSError as exc:
            raise DispatchError(f"Error reserving task output in {directory}: {exc}", directory) from exc

        reserved = os.path.join(directory, name)
        try:
            return await self.dispatch_detached(prompt, reserved)
        except DispatchError:
            await self._release(reserved)
            raise

    async def _release(self, reserved: str) -> None:
        try:
            await aiofiles.os.remove(reserved)
        except FileNotFoundError:
            pass
        except OSError as exc:
            logger.warning(f"Could not remove reserved task file {reserved}: {exc}")
