"""Composition root: builds every service from Settings exactly once."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import List, Optional

from ..config import Settings, get_settings
from ..utils.path_sandbox import AllowedRootSet, PathSandbox
from .claude_code import ClaudeCodeHandler
from .file_system import FileSystemService
from .model_backend import GenerationLimits, ModelBackend
from .model_tools import ModelTool, build_filesystem_tools
from .parallel_tasks import ParallelTasksHandler
from .task_dispatch import CliCommand, TaskDispatcher
from .task_output import TaskNamePattern, TaskOutputAllocator

logger = logging.getLogger("ai_response.system")


@dataclass
class Services:
    sandbox: PathSandbox
    file_system: FileSystemService
    allocator: TaskOutputAllocator
    dispatcher: TaskDispatcher
    backend: ModelBackend
    model_tools: List[ModelTool]
    claude_code: ClaudeCodeHandler
    parallel_tasks: ParallelTasksHandler


def _expand_root(root: str, home: str) -> str:
    if root == "~":
        return home
    if root.startswith("~/"):
        return os.path.join(home, root[2:])
    return root


def build_allowed_roots(settings: Settings, cwd: Optional[str] = None) -> AllowedRootSet:
    home = settings.resolved_home()
    configured = settings.allowed_root_list()
    if not configured:
        return AllowedRootSet.default(home, cwd)
    return AllowedRootSet.from_paths(_expand_root(root, home) for root in configured)


def build_services(settings: Settings, *, roots: Optional[AllowedRootSet] = None, cwd: Optional[str] = None) -> Services:
    roots = roots or build_allowed_roots(settings, cwd)
    sandbox = PathSandbox(roots, home=settings.resolved_home(), cwd=cwd)
    file_system = FileSystemService(sandbox)
    allocator = TaskOutputAllocator()
    command = CliCommand(
        executable=settings.cli_executable,
        prompt_flag=settings.cli_prompt_flag,
        extra_args=tuple(settings.cli_extra_arg_list()),
        output_format=settings.cli_output_format,
    )
    dispatcher = TaskDispatcher(file_system, allocator, command, shell=settings.shell_path)
    backend = ModelBackend(settings)
    model_tools = build_filesystem_tools(file_system)
    pattern = TaskNamePattern(prefix=settings.task_prefix, extension=settings.task_extension)

    logger.info(f"Allowed roots: {', '.join(roots)}")
    return Services(
        sandbox=sandbox,
        file_system=file_system,
        allocator=allocator,
        dispatcher=dispatcher,
        backend=backend,
        model_tools=model_tools,
        claude_code=ClaudeCodeHandler(dispatcher, output_dir=settings.task_output_dir, pattern=pattern),
        parallel_tasks=ParallelTasksHandler(
            file_system,
            backend,
            model_tools,
            GenerationLimits(max_steps=settings.model_max_steps, max_tokens=settings.model_max_tokens),
        ),
    )


@lru_cache
def get_services() -> Services:
    return build_services(get_settings())
