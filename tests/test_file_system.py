"""Tests for sandboxed file access."""

import os

import pytest

from ai_response_mcp.services.file_system import DirectoryEntry, EntryKind
from ai_response_mcp.utils.errors import FileAccessError, PathRejected


class TestListDirectory:
    @pytest.mark.asyncio
    async def test_lists_files_and_directories(self, file_system, sandbox_dirs):
        project = sandbox_dirs.home / "project"
        (project / "src").mkdir(parents=True)
        (project / "README.md").write_text("hello")

        entries = await file_system.list_directory("~/project")

        assert sorted(entries) == [
            DirectoryEntry("README.md", EntryKind.FILE),
            DirectoryEntry("src", EntryKind.DIRECTORY),
        ]
        assert sorted(entry.render() for entry in entries) == ["[DIR] src", "[FILE] README.md"]

    @pytest.mark.asyncio
    async def test_missing_directory_raises_file_access_error(self, file_system):
        with pytest.raises(FileAccessError) as exc_info:
            await file_system.list_directory("~/does-not-exist")
        assert "does-not-exist" in exc_info.value.message
        assert isinstance(exc_info.value.__cause__, OSError)

    @pytest.mark.asyncio
    async def test_outside_directory_is_rejected(self, file_system, sandbox_dirs):
        with pytest.raises(PathRejected):
            await file_system.list_directory(str(sandbox_dirs.outside))


class TestReadWrite:
    @pytest.mark.asyncio
    async def test_read_returns_exact_content(self, file_system, sandbox_dirs):
        (sandbox_dirs.work / "notes.txt").write_text("line one\nline two ü\n", encoding="utf-8")
        assert await file_system.read_file("notes.txt") == "line one\nline two ü\n"

    @pytest.mark.asyncio
    async def test_read_missing_file(self, file_system):
        with pytest.raises(FileAccessError):
            await file_system.read_file("~/missing.txt")

    @pytest.mark.asyncio
    async def test_read_invalid_utf8(self, file_system, sandbox_dirs):
        (sandbox_dirs.home / "binary.bin").write_bytes(b"\xff\xfe\x00garbage")
        with pytest.raises(FileAccessError):
            await file_system.read_file("~/binary.bin")

    @pytest.mark.asyncio
    async def test_read_outside_is_rejected(self, file_system, sandbox_dirs):
        secret = sandbox_dirs.outside / "secret.txt"
        secret.write_text("nope")
        with pytest.raises(PathRejected):
            await file_system.read_file(str(secret))

    @pytest.mark.asyncio
    async def test_write_then_read(self, file_system, sandbox_dirs):
        await file_system.write_file("~/out.txt", "written")
        assert (sandbox_dirs.home / "out.txt").read_text() == "written"
        assert await file_system.read_file("~/out.txt") == "written"

    @pytest.mark.asyncio
    async def test_write_outside_creates_nothing(self, file_system, sandbox_dirs):
        target = sandbox_dirs.outside / "out.txt"
        with pytest.raises(PathRejected):
            await file_system.write_file(str(target), "x")
        assert not target.exists()


class TestDirectories:
    @pytest.mark.asyncio
    async def test_ensure_directory_creates_parents(self, file_system, sandbox_dirs):
        created = await file_system.ensure_directory_exists("~/a/b/c")
        assert created == str(sandbox_dirs.home / "a" / "b" / "c")
        assert os.path.isdir(created)

    @pytest.mark.asyncio
    async def test_ensure_directory_is_idempotent(self, file_system, sandbox_dirs):
        first = await file_system.ensure_directory_exists("~/same")
        assert await file_system.ensure_directory_exists("~/same") == first

    @pytest.mark.asyncio
    async def test_ensure_directory_over_a_file_fails(self, file_system, sandbox_dirs):
        (sandbox_dirs.home / "taken").write_text("file")
        with pytest.raises(FileAccessError):
            await file_system.ensure_directory_exists("~/taken")

    @pytest.mark.asyncio
    async def test_prepare_output_path_creates_parent(self, file_system, sandbox_dirs):
        path = await file_system.prepare_output_path("~/reports/2024/out.txt")
        assert path == str(sandbox_dirs.home / "reports" / "2024" / "out.txt")
        assert (sandbox_dirs.home / "reports" / "2024").is_dir()
        assert not os.path.exists(path)

    @pytest.mark.asyncio
    async def test_prepare_output_path_rejects_directory(self, file_system, sandbox_dirs):
        (sandbox_dirs.home / "dir").mkdir()
        with pytest.raises(FileAccessError):
            await file_system.prepare_output_path("~/dir")

    @pytest.mark.asyncio
    async def test_prepare_output_path_outside(self, file_system, sandbox_dirs):
        with pytest.raises(PathRejected):
            await file_system.prepare_output_path(str(sandbox_dirs.outside / "x" / "out.txt"))
        assert not (sandbox_dirs.outside / "x").exists()


class TestDescribePath:
    @pytest.mark.asyncio
    async def test_file_block(self, file_system, sandbox_dirs):
        (sandbox_dirs.home / "a.py").write_text("print('a')")
        block = await file_system.describe_path("~/a.py")
        assert block == "\n--- File: ~/a.py ---\nprint('a')\n--- End of file: ~/a.py ---\n"

    @pytest.mark.asyncio
    async def test_directory_block(self, file_system, sandbox_dirs):
        (sandbox_dirs.home / "pkg").mkdir()
        (sandbox_dirs.home / "pkg" / "mod.py").write_text("")
        block = await file_system.describe_path("~/pkg")
        assert block == "\n--- Directory: ~/pkg ---\n[FILE] mod.py\n--- End of directory: ~/pkg ---\n"

    @pytest.mark.asyncio
    async def test_failures_are_reported_inline(self, file_system, sandbox_dirs):
        missing = await file_system.describe_path("~/missing.txt")
        assert missing.startswith("\n--- Error reading ~/missing.txt: ")

        outside = await file_system.describe_path("/etc/passwd")
        assert outside.startswith("\n--- Error reading /etc/passwd: Path not allowed")

    @pytest.mark.asyncio
    async def test_describe_paths_keeps_order(self, file_system, sandbox_dirs):
        (sandbox_dirs.home / "one.txt").write_text("1")
        (sandbox_dirs.home / "two.txt").write_text("2")
        blocks = await file_system.describe_paths(["~/two.txt", "~/missing", "~/one.txt"])
        assert "--- File: ~/two.txt ---" in blocks[0]
        assert "Error reading ~/missing" in blocks[1]
        assert "--- File: ~/one.txt ---" in blocks[2]
