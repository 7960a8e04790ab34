from __future__ import annotations

import io
import os
from pathlib import Path
from typing import Iterable

import pytest
from rich.console import Console

from dotsetup.context import RunContext
from dotsetup.errors import LinkFarmError
from dotsetup.linkfarm import ActionLog, LinkFarm
from dotsetup.logging_setup import Reporter


class FakeLinkFarm(LinkFarm):
    """Links every file of a package with relative symlinks, like stow --no-folding."""

    def __init__(self, fail_for: Iterable[str] = ()):
        self.fail_for = set(fail_for)
        self.calls: list[str] = []

    def materialize(self, package_name: str, working_dir: Path, target: Path) -> ActionLog:
        self.calls.append(package_name)
        if package_name in self.fail_for:
            raise LinkFarmError(f"conflict in {package_name}", output="WARNING! stowing would cause conflicts")

        lines = []
        package_root = Path(working_dir) / package_name
        for dirpath, dirnames, filenames in os.walk(package_root):
            dirnames.sort()
            rel_dir = Path(dirpath).relative_to(package_root)
            for dirname in dirnames:
                dest = target / rel_dir / dirname
                if not dest.exists():
                    dest.mkdir(parents=True)
                    lines.append(f"MKDIR: {(rel_dir / dirname).as_posix()}")
            for filename in sorted(filenames):
                source = Path(dirpath) / filename
                dest = target / rel_dir / filename
                if dest.is_symlink() and dest.resolve() == source.resolve():
                    continue
                if os.path.lexists(dest):
                    raise LinkFarmError(
                        f"existing target is not owned by stow: {dest}",
                        output=f"* existing target is neither a link nor a directory: {dest}",
                    )
                dest.symlink_to(os.path.relpath(source, dest.parent))
                lines.append(f"LINK: {(rel_dir / filename).as_posix()} => {os.path.relpath(source, dest.parent)}")
        return ActionLog("\n".join(lines))


@pytest.fixture
def dotfiles(tmp_path: Path) -> Path:
    root = tmp_path / "dotfiles"
    root.mkdir()
    return root


@pytest.fixture
def home(tmp_path: Path) -> Path:
    path = tmp_path / "home"
    path.mkdir()
    return path


@pytest.fixture
def context(dotfiles: Path, home: Path) -> RunContext:
    return RunContext.create(dotfiles, home)


@pytest.fixture
def console_output() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def reporter(console_output: io.StringIO) -> Reporter:
    return Reporter(Console(file=console_output, width=200, color_system=None))


def write(path: Path, content: str = "data") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path
