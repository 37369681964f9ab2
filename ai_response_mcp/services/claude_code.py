from __future__ import annotations

import logging
import os
from typing import Any, Dict

from ..utils.errors import DispatchError, text_result
from .task_dispatch import TaskDispatcher
from .task_output import TaskNamePattern

logger = logging.getLogger("ai_response.dispatch")


class ClaudeCodeHandler:
    """Runs the external CLI in the background for the ``claude-code-async`` tool.

    With ``relativeOutputPath`` the output goes to exactly that file under
    ``projectRoot``. Without it the next free ``<prefix><n><ext>`` file in
    ``<projectRoot>/<output_dir>`` is reserved.
    """

    def __init__(self, dispatcher: TaskDispatcher, *, output_dir: str, pattern: TaskNamePattern) -> None:
        self.dispatcher = dispatcher
        self.output_dir = output_dir
        self.pattern = pattern

    async def execute(self, params: Dict[str, Any]) -> Dict[str, Any]:
        prompt = params.get("prompt")
        project_root = params.get("projectRoot")
        relative_output_path = params.get("relativeOutputPath")

        if not isinstance(prompt, str) or not prompt.strip():
            return text_result("Error running claude-code: 'prompt' is required", is_error=True)
        if not isinstance(project_root, str) or not project_root.strip():
            return text_result("Error running claude-code: 'projectRoot' is required", is_error=True)

        try:
            if relative_output_path:
                ack = await self.dispatcher.dispatch_detached(
                    prompt, os.path.join(project_root, str(relative_output_path))
                )
            else:
                ack = await self.dispatcher.dispatch_to_directory(
                    prompt, os.path.join(project_root, self.output_dir), self.pattern
                )
        except DispatchError as exc:
            logger.error(f"claude-code dispatch failed: {exc.message}")
            return text_result(
                f"Error running claude-code: {exc.message}. "
                f"Failed to start command for output to {exc.output_path}",
                is_error=True,
            )

        return text_result(
            "Claude Code command started in background.\n"
            f"Output will be saved to: {ack.output_path}. This can take up to 5 minutes to complete."
        )
