import shlex
from functools import lru_cache
from pathlib import Path
from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import AnyHttpUrl, Field


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        extra="allow",
        env_file=".env",
        env_file_encoding="utf-8",
        protected_namespaces=("settings_",),
    )

    # --- Sandbox ---
    # Comma separated; empty means home directory + current working directory
    allowed_roots: str = Field(default="", validation_alias="ALLOWED_ROOTS")
    home_dir: Optional[str] = Field(default=None, validation_alias="SANDBOX_HOME")

    # --- External CLI ---
    cli_executable: str = Field(default="claude", validation_alias="CLI_EXECUTABLE")
    cli_prompt_flag: str = Field(default="-p", validation_alias="CLI_PROMPT_FLAG")
    cli_extra_args: str = Field(default="", validation_alias="CLI_EXTRA_ARGS")
    cli_output_format: Optional[str] = Field(default=None, validation_alias="CLI_OUTPUT_FORMAT")
    shell_path: str = Field(default="/bin/sh", validation_alias="SHELL_PATH")

    # --- Background task output ---
    task_output_dir: str = Field(default=".ai-tasks", validation_alias="TASK_OUTPUT_DIR")
    task_prefix: str = Field(default="task-", validation_alias="TASK_PREFIX")
    task_extension: str = Field(default=".txt", validation_alias="TASK_EXTENSION")

    # --- Model providers ---
    openai_api_key: Optional[str] = Field(default=None, validation_alias="OPENAI_API_KEY")
    openai_base_url: AnyHttpUrl = Field(default="https://api.openai.com", validation_alias="OPENAI_BASE_URL")
    anthropic_api_key: Optional[str] = Field(default=None, validation_alias="ANTHROPIC_API_KEY")
    anthropic_base_url: AnyHttpUrl = Field(default="https://api.anthropic.com", validation_alias="ANTHROPIC_BASE_URL")
    anthropic_version: str = Field(default="2023-06-01", validation_alias="ANTHROPIC_VERSION")
    model_timeout: float = Field(default=120.0, validation_alias="MODEL_TIMEOUT")
    model_max_steps: int = Field(default=10, validation_alias="MODEL_MAX_STEPS")
    model_max_tokens: int = Field(default=10000, validation_alias="MODEL_MAX_TOKENS")

    # --- Server ---
    host: str = Field(default="127.0.0.1", validation_alias="MCP_HOST")
    port: int = Field(default=9100, validation_alias="MCP_PORT")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_dir: Optional[str] = Field(default=None, validation_alias="LOG_DIR")

    def allowed_root_list(self) -> List[str]:
        return [item.strip() for item in self.allowed_roots.split(",") if item.strip()]

    def resolved_home(self) -> str:
        return self.home_dir or str(Path.home())

    def cli_extra_arg_list(self) -> List[str]:
        return shlex.split(self.cli_extra_args)


@lru_cache
def get_settings() -> Settings:
    return Settings()
