import subprocess
import urllib.request
from pathlib import Path

import pytest

from dotsetup.utils import Utils


class BrokenResponse:
    """Yields one chunk, then drops the connection."""

    def __init__(self):
        self.reads = 0

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def read(self, size=-1):
        self.reads += 1
        if self.reads == 1:
            return b"partial-png-bytes"
        raise ConnectionResetError("connection reset by peer")


def test_interrupted_download_leaves_nothing_behind(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setattr(urllib.request, "urlopen", lambda url, timeout=None: BrokenResponse())
    dest = tmp_path / "backgrounds" / "shaded.png"

    with pytest.raises(OSError):
        Utils.download("https://example.invalid/wall.png", dest, timeout=5)

    assert not dest.exists()
    assert list(dest.parent.iterdir()) == []


def test_download_replaces_dest_when_complete(monkeypatch, tmp_path: Path) -> None:
    class Response(BrokenResponse):
        def read(self, size=-1):
            self.reads += 1
            return b"png" if self.reads == 1 else b""

    monkeypatch.setattr(urllib.request, "urlopen", lambda url, timeout=None: Response())
    dest = tmp_path / "shaded.png"

    Utils.download("https://example.invalid/wall.png", dest)

    assert dest.read_bytes() == b"png"
    assert [p.name for p in tmp_path.iterdir()] == ["shaded.png"]


def test_timeout_without_check_returns_failed_result(monkeypatch) -> None:
    def slow(cmd, **kwargs):
        raise subprocess.TimeoutExpired(cmd, kwargs.get("timeout"))

    monkeypatch.setattr(subprocess, "run", slow)

    res = Utils.run_command(["chsh", "-s", "/usr/bin/zsh"], check=False, timeout=5)

    assert res.returncode == 1
    assert res.stderr == "Timeout"


def test_timeout_with_check_raises(monkeypatch) -> None:
    def slow(cmd, **kwargs):
        raise subprocess.TimeoutExpired(cmd, kwargs.get("timeout"))

    monkeypatch.setattr(subprocess, "run", slow)

    with pytest.raises(subprocess.TimeoutExpired):
        Utils.run_command(["sleep", "100"], timeout=1)


def test_missing_executable_without_check_returns_127() -> None:
    res = Utils.run_command(["definitely-not-a-command-xyz"], check=False)

    assert res.returncode == 127


def test_missing_executable_with_check_raises() -> None:
    with pytest.raises(FileNotFoundError):
        Utils.run_command(["definitely-not-a-command-xyz"])
