from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import httpx

from ..config import Settings
from ..utils.errors import ModelBackendError, ToolError
from ..utils.http_client import HttpClient
from .model_tiers import ModelConfig, Provider
from .model_tools import ModelTool

logger = logging.getLogger("ai_response.models")


@dataclass(frozen=True)
class GenerationLimits:
    max_steps: int = 10
    max_tokens: int = 10000


def _error_detail(exc: httpx.HTTPError) -> str:
    response = getattr(exc, "response", None)
    if response is None:
        return str(exc)
    try:
        error = response.json().get("error", {})
    except (ValueError, AttributeError):
        return f"status {response.status_code}"
    if isinstance(error, dict) and error.get("message"):
        return f"status {response.status_code}: {error['message']}"
    return f"status {response.status_code}"


class ModelBackend:
    """
    Text generation with a tool-call loop.

    ``generate`` sends the prompt to the configured provider, executes any
    tool calls the model makes against the given ModelTools and feeds the
    results back, for at most ``limits.max_steps`` round trips. The final
    text is returned as-is.
    """

    def __init__(self, settings: Settings) -> None:
        self.openai_api_key = settings.openai_api_key
        self.openai_base_url = str(settings.openai_base_url)
        self.anthropic_api_key = settings.anthropic_api_key
        self.anthropic_base_url = str(settings.anthropic_base_url)
        self.anthropic_version = settings.anthropic_version
        self.timeout = settings.model_timeout

    async def generate(
        self,
        prompt: str,
        *,
        config: ModelConfig,
        tools: Sequence[ModelTool] = (),
        limits: GenerationLimits = GenerationLimits(),
        system: Optional[str] = None,
    ) -> str:
        logger.info(f"Generating with {config.provider.value}/{config.model_id} ({len(prompt)} chars)")
        if config.provider == Provider.ANTHROPIC:
            return await self._generate_anthropic(prompt, config.model_id, tools, limits, system)
        return await self._generate_openai(prompt, config.model_id, tools, limits, system)

    async def _run_tool(self, tools: Dict[str, ModelTool], name: str, args: Any) -> Dict[str, Any]:
        tool = tools.get(name)
        if tool is None:
            return {"success": False, "error": f"Unknown tool: {name}"}
        # null, a list or a scalar counts as no arguments
        if not isinstance(args, dict):
            args = {}
        try:
            return await tool.handler(args)
        except ToolError as exc:
            return {"success": False, "error": exc.message}
        except Exception as exc:
            logger.exception(f"Tool {name} failed: {exc}")
            return {"success": False, "error": f"Tool {name} failed: {exc}"}

    async def _post(self, client: HttpClient, url: str, headers: Dict[str, str], body: Dict[str, Any], provider: str) -> Dict[str, Any]:
        try:
            response = await client.post(url, headers=headers, json=body, timeout=self.timeout)
        except httpx.HTTPError as exc:
            raise ModelBackendError(f"{provider} request failed: {_error_detail(exc)}") from exc
        try:
            return response.json()
        except ValueError as exc:
            raise ModelBackendError(f"{provider} returned invalid JSON") from exc

    async def _generate_openai(
        self,
        prompt: str,
        model_id: str,
        tools: Sequence[ModelTool],
        limits: GenerationLimits,
        system: Optional[str],
    ) -> str:
        if not self.openai_api_key:
            raise ModelBackendError("OPENAI_API_KEY is not configured")

        headers = {
            "Authorization": f"Bearer {self.openai_api_key}",
            "Content-Type": "application/json",
        }
        messages: List[Dict[str, Any]] = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        tool_specs = [
            {"type": "function", "function": {"name": t.name, "description": t.description, "parameters": t.parameters}}
            for t in tools
        ]
        tools_by_name = {t.name: t for t in tools}
        client = HttpClient(base_url=self.openai_base_url)
        text = ""

        for step in range(limits.max_steps):
            body: Dict[str, Any] = {
                "model": model_id,
                "messages": messages,
                "max_completion_tokens": limits.max_tokens,
            }
            if tool_specs:
                body["tools"] = tool_specs

            data = await self._post(client, "/v1/chat/completions", headers, body, "OpenAI")
            choices = data.get("choices") or []
            if not choices:
                raise ModelBackendError("OpenAI response contained no choices")

            message = choices[0].get("message") or {}
            text = message.get("content") or ""
            tool_calls = message.get("tool_calls") or []
            if not tool_calls:
                return text

            messages.append({"role": "assistant", "content": message.get("content"), "tool_calls": tool_calls})
            for call in tool_calls:
                function = call.get("function") or {}
                try:
                    args = json.loads(function.get("arguments") or "{}")
                except json.JSONDecodeError:
                    args = {}
                logger.debug(f"OpenAI step {step + 1}: tool {function.get('name')}")
                result = await self._run_tool(tools_by_name, function.get("name", ""), args)
                messages.append({"role": "tool", "tool_call_id": call.get("id"), "content": json.dumps(result)})

        logger.warning(f"OpenAI {model_id} hit the step limit ({limits.max_steps})")
        return text

    async def _generate_anthropic(
        self,
        prompt: str,
        model_id: str,
        tools: Sequence[ModelTool],
        limits: GenerationLimits,
        system: Optional[str],
    ) -> str:
        if not self.anthropic_api_key:
            raise ModelBackendError("ANTHROPIC_API_KEY is not configured")

        headers = {
            "x-api-key": self.anthropic_api_key,
            "anthropic-version": self.anthropic_version,
            "content-type": "application/json",
        }
        messages: List[Dict[str, Any]] = [{"role": "user", "content": prompt}]
        tool_specs = [{"name": t.name, "description": t.description, "input_schema": t.parameters} for t in tools]
        tools_by_name = {t.name: t for t in tools}
        client = HttpClient(base_url=self.anthropic_base_url)
        text = ""

        for step in range(limits.max_steps):
            body: Dict[str, Any] = {
                "model": model_id,
                "max_tokens": limits.max_tokens,
                "messages": messages,
            }
            if system:
                body["system"] = system
            if tool_specs:
                body["tools"] = tool_specs

            data = await self._post(client, "/v1/messages", headers, body, "Anthropic")
            blocks = data.get("content") or []
            text = "".join(block.get("text", "") for block in blocks if block.get("type") == "text")
            tool_uses = [block for block in blocks if block.get("type") == "tool_use"]
            if data.get("stop_reason") != "tool_use" or not tool_uses:
                return text

            messages.append({"role": "assistant", "content": blocks})
            results = []
            for use in tool_uses:
                logger.debug(f"Anthropic step {step + 1}: tool {use.get('name')}")
                result = await self._run_tool(tools_by_name, use.get("name", ""), use.get("input"))
                results.append({"type": "tool_result", "tool_use_id": use.get("id"), "content": json.dumps(result)})
            messages.append({"role": "user", "content": results})

        logger.warning(f"Anthropic {model_id} hit the step limit ({limits.max_steps})")
        return text
