from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Sequence

from ..utils.errors import ToolError, text_result
from .file_system import FileSystemService
from .model_backend import GenerationLimits, ModelBackend
from .model_tiers import MODEL_TIERS, get_model_config, get_system_prompt
from .model_tools import ModelTool

logger = logging.getLogger("ai_response.models")


@dataclass
class TaskResponse:
    prompt_index: int
    prompt: str
    response: str
    success: bool


def _string_list(value: Any, name: str) -> List[str]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ValueError(f"'{name}' must be a list of strings")
    return value


class ParallelTasksHandler:
    """Answers several prompts concurrently with shared file/directory context."""

    def __init__(
        self,
        file_system: FileSystemService,
        backend: ModelBackend,
        tools: Sequence[ModelTool],
        limits: GenerationLimits,
    ) -> None:
        self.file_system = file_system
        self.backend = backend
        self.tools = list(tools)
        self.limits = limits

    async def execute(self, params: Dict[str, Any]) -> Dict[str, Any]:
        try:
            prompts = _string_list(params.get("prompts"), "prompts")
            relevant_files = _string_list(params.get("relevant-files"), "relevant-files")
            relevant_directories = _string_list(params.get("relevant-directories"), "relevant-directories")
        except ValueError as exc:
            return text_result(f"Error generating AI response: {exc}", is_error=True)
        if not prompts:
            return text_result("Error generating AI response: 'prompts' must not be empty", is_error=True)

        model = str(params.get("model") or "ultra-light")
        if model not in MODEL_TIERS:
            logger.warning(f"Unknown model tier {model!r}, using fallback")

        context = await self.build_context(relevant_files, relevant_directories)
        responses = await self.generate_responses(prompts, model, context)
        return text_result(self.format_responses(responses))

    async def build_context(self, relevant_files: List[str], relevant_directories: List[str]) -> str:
        file_blocks, directory_blocks = await asyncio.gather(
            self.file_system.describe_paths(relevant_files),
            self.file_system.describe_paths(relevant_directories),
        )
        context = ""
        if file_blocks:
            context = "\nFile Context:\n" + "\n".join(file_blocks) + "\n"
        if directory_blocks:
            context += "\nDirectory Context:\n" + "\n".join(directory_blocks) + "\n"
        return context

    async def _generate_one(self, index: int, prompt: str, model: str, context: str) -> TaskResponse:
        try:
            text = await self.backend.generate(
                f"{context}{prompt}",
                config=get_model_config(model),
                tools=self.tools,
                limits=self.limits,
                system=get_system_prompt(model) or None,
            )
        except ToolError as exc:
            logger.error(f"Prompt {index + 1} failed: {exc.message}")
            return TaskResponse(index, prompt, f"Error generating response: {exc.message}", False)
        except Exception as exc:
            logger.exception(f"Prompt {index + 1} failed unexpectedly: {exc}")
            return TaskResponse(index, prompt, f"Error generating response: {exc}", False)
        return TaskResponse(index, prompt, text, True)

    async def generate_responses(self, prompts: List[str], model: str, context: str) -> List[TaskResponse]:
        return list(
            await asyncio.gather(
                *(self._generate_one(index, prompt, model, context) for index, prompt in enumerate(prompts))
            )
        )

    @staticmethod
    def format_responses(responses: List[TaskResponse]) -> str:
        return "\n\n".join(
            f"{'✓' if resp.success else '✗'} Prompt {resp.prompt_index + 1}: {resp.prompt}"
            f"\n\nResponse:\n{resp.response}\n{'=' * 80}"
            for resp in responses
        )
