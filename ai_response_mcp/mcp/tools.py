from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict

from ..services.container import Services
from ..services.model_tiers import MODEL_TIERS
from ..utils.errors import ToolError, text_result

McpHandler = Callable[[Dict[str, Any]], Awaitable[Dict[str, Any]]]


# Tool definitions for MCP tools/list
TOOLS = [
    {
        "name": "claude-code-async",
        "description": "Run Claude Code commands in background",
        "inputSchema": {
            "type": "object",
            "properties": {
                "prompt": {
                    "type": "string",
                    "description": "The prompt to send to Claude Code, including any relevant file paths",
                },
                "projectRoot": {
                    "type": "string",
                    "description": "Absolute path to the project root directory where output should be saved",
                },
                "relativeOutputPath": {
                    "type": "string",
                    "description": "Relative path from project root for the output file "
                    "(defaults to the next numbered task file in the task output directory)",
                },
            },
            "required": ["prompt", "projectRoot"],
        },
    },
    {
        "name": "parallel-tasks",
        "description": "Send several prompts to an AI model in parallel with optional file context",
        "inputSchema": {
            "type": "object",
            "properties": {
                "prompts": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "The prompts to send to the AI model",
                },
                "model": {
                    "type": "string",
                    "enum": list(MODEL_TIERS),
                    "description": "AI mode to use",
                },
                "relevant-files": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "List of file paths to read and include as context. "
                    "Use the exact file path, starting at ~/",
                },
                "relevant-directories": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "List of directory paths to read and include as context. "
                    "Use the exact directory path, starting at ~/",
                },
            },
            "required": ["prompts", "model"],
        },
    },
    {
        "name": "list-directory",
        "description": "List the contents of a directory",
        "inputSchema": {
            "type": "object",
            "properties": {
                "directoryPath": {"type": "string", "description": "The path to the directory to list"},
            },
            "required": ["directoryPath"],
        },
    },
    {
        "name": "read-file",
        "description": "Read the contents of a file",
        "inputSchema": {
            "type": "object",
            "properties": {
                "filePath": {"type": "string", "description": "The path to the file to read"},
            },
            "required": ["filePath"],
        },
    },
]


def build_handlers(services: Services) -> Dict[str, McpHandler]:
    file_system = services.file_system

    async def handle_list_directory(params: Dict[str, Any]) -> Dict[str, Any]:
        directory_path = params.get("directoryPath")
        if not directory_path:
            return text_result("directoryPath required", is_error=True)
        try:
            entries = await file_system.list_directory(str(directory_path))
        except ToolError as exc:
            return text_result(exc.message, is_error=True)
        return text_result("\n".join(entry.render() for entry in entries))

    async def handle_read_file(params: Dict[str, Any]) -> Dict[str, Any]:
        file_path = params.get("filePath")
        if not file_path:
            return text_result("filePath required", is_error=True)
        try:
            content = await file_system.read_file(str(file_path))
        except ToolError as exc:
            return text_result(exc.message, is_error=True)
        return text_result(content)

    return {
        "claude-code-async": services.claude_code.execute,
        "parallel-tasks": services.parallel_tasks.execute,
        "list-directory": handle_list_directory,
        "read-file": handle_read_file,
    }
