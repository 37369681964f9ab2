"""Tests for launching the external CLI detached from the server."""

import shlex
from unittest.mock import AsyncMock, patch

import pytest

from ai_response_mcp.services.task_dispatch import CliCommand, TaskDispatcher
from ai_response_mcp.services.task_output import TaskNamePattern, TaskOutputAllocator
from ai_response_mcp.utils.errors import DispatchError
from tests._helpers import FakeProcess, wait_for_content


def make_dispatcher(file_system, command=None, shell="/bin/sh"):
    command = command or CliCommand(executable="echo", prompt_flag="--")
    return TaskDispatcher(file_system, TaskOutputAllocator(), command, shell=shell)


class TestCliCommand:
    def test_build_quotes_every_value(self):
        command = CliCommand(executable="claude", prompt_flag="-p")
        prompt = "it's \"quoted\" $(rm -rf ~) `id`; echo pwned"
        line = command.build(prompt, "/tmp/my output/task-0.txt")

        assert shlex.split(line) == [
            "nohup", "claude", "-p", prompt, ">", "/tmp/my output/task-0.txt", "2>&1", "&",
        ]

    def test_extra_args_and_output_format(self):
        command = CliCommand(
            executable="claude",
            prompt_flag="-p",
            extra_args=("--dangerously-skip-permissions",),
            output_format="json",
        )
        assert shlex.split(command.build("hi", "/tmp/out.txt")) == [
            "nohup", "claude", "--dangerously-skip-permissions", "-p", "hi",
            "--output-format", "json", ">", "/tmp/out.txt", "2>&1", "&",
        ]


class TestDispatchDetached:
    @pytest.mark.asyncio
    async def test_launches_new_session_and_returns_ack(self, file_system, sandbox_dirs):
        dispatcher = make_dispatcher(file_system)
        launcher = AsyncMock(return_value=FakeProcess(pid=99))

        with patch("asyncio.create_subprocess_exec", launcher):
            ack = await dispatcher.dispatch_detached("hello", "~/out/result.txt")

        assert ack.output_path == str(sandbox_dirs.home / "out" / "result.txt")
        assert ack.launcher_pid == 99
        assert (sandbox_dirs.home / "out").is_dir()

        args, kwargs = launcher.call_args
        assert args[:2] == ("/bin/sh", "-c")
        assert args[2] == ack.command
        assert kwargs["start_new_session"] is True

    @pytest.mark.asyncio
    async def test_nonzero_launcher_exit(self, file_system):
        dispatcher = make_dispatcher(file_system)
        launcher = AsyncMock(return_value=FakeProcess(returncode=2, stderr=b"sh: syntax error"))

        with patch("asyncio.create_subprocess_exec", launcher):
            with pytest.raises(DispatchError) as exc_info:
                await dispatcher.dispatch_detached("hello", "~/out.txt")

        assert "syntax error" in exc_info.value.message
        assert exc_info.value.output_path.endswith("out.txt")

    @pytest.mark.asyncio
    async def test_outside_output_is_rejected_before_launch(self, file_system, sandbox_dirs):
        dispatcher = make_dispatcher(file_system)
        launcher = AsyncMock(return_value=FakeProcess())
        target = str(sandbox_dirs.outside / "out.txt")

        with patch("asyncio.create_subprocess_exec", launcher):
            with pytest.raises(DispatchError) as exc_info:
                await dispatcher.dispatch_detached("hello", target)

        assert exc_info.value.output_path == target
        assert "Path not allowed" in exc_info.value.message
        launcher.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_executable(self, file_system):
        dispatcher = make_dispatcher(
            file_system, CliCommand(executable="no-such-cli-binary-for-tests", prompt_flag="-p")
        )
        with pytest.raises(DispatchError) as exc_info:
            await dispatcher.dispatch_detached("hello", "~/out.txt")
        assert "not found" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_missing_shell(self, file_system):
        dispatcher = make_dispatcher(file_system, shell="/nonexistent/bin/sh")
        with pytest.raises(DispatchError) as exc_info:
            await dispatcher.dispatch_detached("hello", "~/out.txt")
        assert "Failed to start" in exc_info.value.message

    @pytest.mark.asyncio
    @pytest.mark.integration
    async def test_output_reaches_file(self, file_system, sandbox_dirs):
        dispatcher = make_dispatcher(file_system)
        ack = await dispatcher.dispatch_detached("hello from the background", "~/out.txt")

        content = await wait_for_content(sandbox_dirs.home / "out.txt")
        assert "hello from the background" in content
        assert ack.output_path == str(sandbox_dirs.home / "out.txt")

    @pytest.mark.asyncio
    @pytest.mark.integration
    async def test_prompt_is_never_interpreted_by_the_shell(self, file_system, sandbox_dirs):
        marker = sandbox_dirs.work / "pwned"
        prompt = f"'; touch {marker}; echo '$(touch {marker})"
        dispatcher = make_dispatcher(file_system)

        await dispatcher.dispatch_detached(prompt, "~/out.txt")

        content = await wait_for_content(sandbox_dirs.home / "out.txt")
        assert prompt in content
        assert not marker.exists()


class TestDispatchToDirectory:
    @pytest.mark.asyncio
    async def test_numbers_outputs_in_directory(self, file_system, sandbox_dirs):
        dispatcher = make_dispatcher(file_system)
        pattern = TaskNamePattern()
        launcher = AsyncMock(side_effect=lambda *a, **k: FakeProcess())

        with patch("asyncio.create_subprocess_exec", launcher):
            first = await dispatcher.dispatch_to_directory("one", "~/proj/.ai-tasks", pattern)
            second = await dispatcher.dispatch_to_directory("two", "~/proj/.ai-tasks", pattern)

        tasks_dir = sandbox_dirs.home / "proj" / ".ai-tasks"
        assert first.output_path == str(tasks_dir / "task-0.txt")
        assert second.output_path == str(tasks_dir / "task-1.txt")
        assert (tasks_dir / "task-0.txt").exists()

    @pytest.mark.asyncio
    async def test_outside_directory_is_not_created(self, file_system, sandbox_dirs):
        dispatcher = make_dispatcher(file_system)
        target = sandbox_dirs.outside / "tasks"

        with pytest.raises(DispatchError):
            await dispatcher.dispatch_to_directory("one", str(target), TaskNamePattern())
        assert not target.exists()


class TestFailedDispatchLeavesNoTrace:
    @pytest.mark.asyncio
    async def test_missing_executable_creates_no_directories(self, file_system, sandbox_dirs):
        dispatcher = make_dispatcher(
            file_system, CliCommand(executable="no-such-cli-binary-for-tests", prompt_flag="-p")
        )

        with pytest.raises(DispatchError):
            await dispatcher.dispatch_detached("hello", "~/new/nested/out.txt")
        with pytest.raises(DispatchError):
            await dispatcher.dispatch_to_directory("hello", "~/proj/.ai-tasks", TaskNamePattern())

        assert not (sandbox_dirs.home / "new").exists()
        assert not (sandbox_dirs.home / "proj").exists()

    @pytest.mark.asyncio
    async def test_failed_launch_releases_reserved_name(self, file_system, sandbox_dirs):
        dispatcher = make_dispatcher(file_system)
        pattern = TaskNamePattern()
        tasks_dir = sandbox_dirs.home / "proj" / ".ai-tasks"

        failing = AsyncMock(return_value=FakeProcess(returncode=1, stderr=b"boom"))
        with patch("asyncio.create_subprocess_exec", failing):
            with pytest.raises(DispatchError) as exc_info:
                await dispatcher.dispatch_to_directory("one", "~/proj/.ai-tasks", pattern)

        assert exc_info.value.output_path == str(tasks_dir / "task-0.txt")
        assert list(tasks_dir.iterdir()) == []

        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=FakeProcess())):
            ack = await dispatcher.dispatch_to_directory("one", "~/proj/.ai-tasks", pattern)
        assert ack.output_path == str(tasks_dir / "task-0.txt")
