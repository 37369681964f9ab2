"""Filesystem tools offered to the model during generation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List

from ..utils.errors import ToolError
from .file_system import FileSystemService

ToolHandler = Callable[[Dict[str, Any]], Awaitable[Dict[str, Any]]]


@dataclass(frozen=True)
class ModelTool:
    name: str
    description: str
    parameters: Dict[str, Any]
    handler: ToolHandler


def build_filesystem_tools(file_system: FileSystemService) -> List[ModelTool]:
    async def list_directory(args: Dict[str, Any]) -> Dict[str, Any]:
        directory_path = str(args.get("directoryPath", ""))
        try:
            entries = await file_system.list_directory(directory_path)
        except ToolError as exc:
            return {
                "success": False,
                "directoryPath": directory_path,
                "error": f"Error listing directory {directory_path}: {exc.message}",
            }
        contents = [entry.render() for entry in entries]
        return {
            "success": True,
            "directoryPath": directory_path,
            "contents": contents,
            "message": f"Successfully listed {len(contents)} items in {directory_path}",
        }

    async def read_file(args: Dict[str, Any]) -> Dict[str, Any]:
        file_path = str(args.get("filePath", ""))
        try:
            content = await file_system.read_file(file_path)
        except ToolError as exc:
            return {
                "success": False,
                "filePath": file_path,
                "error": f"Error reading file {file_path}: {exc.message}",
            }
        return {
            "success": True,
            "filePath": file_path,
            "content": content,
            "message": f"Successfully read file {file_path} ({len(content)} characters)",
        }

    return [
        ModelTool(
            name="listDirectory",
            description="List the contents of a directory",
            parameters={
                "type": "object",
                "properties": {
                    "directoryPath": {"type": "string", "description": "The path to the directory to list"},
                },
                "required": ["directoryPath"],
            },
            handler=list_directory,
        ),
        ModelTool(
            name="readFile",
            description="Read the contents of a file",
            parameters={
                "type": "object",
                "properties": {
                    "filePath": {"type": "string", "description": "The path to the file to read"},
                },
                "required": ["filePath"],
            },
            handler=read_file,
        ),
    ]
