"""
Test configuration and fixtures for ai-response-mcp tests.

Every test gets its own sandbox under ``tmp_path``: a fake home directory and
a fake working directory are the only allowed roots, and an ``outside``
directory next to them is never allowed.
"""

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from ai_response_mcp.config import Settings, get_settings
from ai_response_mcp.services.container import build_services, get_services
from ai_response_mcp.services.file_system import FileSystemService
from ai_response_mcp.utils.path_sandbox import AllowedRootSet, PathSandbox


@pytest.fixture
def sandbox_dirs(tmp_path: Path) -> SimpleNamespace:
    base = tmp_path.resolve()
    dirs = SimpleNamespace(home=base / "home", work=base / "work", outside=base / "outside")
    for directory in (dirs.home, dirs.work, dirs.outside):
        directory.mkdir()
    return dirs


@pytest.fixture
def roots(sandbox_dirs) -> AllowedRootSet:
    return AllowedRootSet.from_paths([str(sandbox_dirs.home), str(sandbox_dirs.work)])


@pytest.fixture
def sandbox(roots, sandbox_dirs) -> PathSandbox:
    return PathSandbox(roots, home=str(sandbox_dirs.home), cwd=str(sandbox_dirs.work))


@pytest.fixture
def file_system(sandbox) -> FileSystemService:
    return FileSystemService(sandbox)


@pytest.fixture
def test_settings(sandbox_dirs) -> Settings:
    """Settings isolated from the environment and any .env file."""
    settings = Settings(_env_file=None)
    settings.allowed_roots = ""
    settings.home_dir = str(sandbox_dirs.home)
    settings.cli_executable = "echo"
    settings.cli_prompt_flag = "--"
    settings.cli_extra_args = ""
    settings.cli_output_format = None
    settings.openai_api_key = "test-openai-key"
    settings.anthropic_api_key = "test-anthropic-key"
    settings.model_max_steps = 4
    settings.model_max_tokens = 256
    return settings


@pytest.fixture
def services(test_settings, roots, sandbox_dirs):
    return build_services(test_settings, roots=roots, cwd=str(sandbox_dirs.work))


@pytest.fixture(autouse=True)
def clear_cached_singletons():
    """Settings and services are lru_cached; never leak them between tests."""
    get_settings.cache_clear()
    get_services.cache_clear()
    yield
    get_settings.cache_clear()
    get_services.cache_clear()


def pytest_configure(config):
    """Configure custom test markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests that spawn real processes"
    )
