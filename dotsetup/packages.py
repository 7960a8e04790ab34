"""Discovery of configuration packages and their tracked entries."""

import fnmatch
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Sequence


@dataclass(frozen=True)
class ConfigPackage:
    name: str
    root: Path


@dataclass(frozen=True)
class TrackedEntry:
    relative_path: Path
    source: Path
    target: Path
    depth: int

    @property
    def is_dir(self) -> bool:
        return self.source.is_dir() and not self.source.is_symlink()


def list_packages(dotfiles_root: Path) -> List[ConfigPackage]:
    """Return one package per visible top-level directory, sorted by name."""
    root = Path(dotfiles_root)
    if not root.is_dir():
        return []
    packages = [
        ConfigPackage(name=child.name, root=child)
        for child in root.iterdir()
        if child.is_dir() and not child.name.startswith(".")
    ]
    return sorted(packages, key=lambda p: p.name)


def _ignored(name: str, depth: int, ignore: Sequence[str], ignore_top_level: Sequence[str]) -> bool:
    if any(fnmatch.fnmatchcase(name, pattern) for pattern in ignore):
        return True
    return depth == 1 and any(
        fnmatch.fnmatchcase(name, pattern) for pattern in ignore_top_level
    )


def iter_entries(
    package: ConfigPackage,
    home: Path,
    max_depth: int = 3,
    ignore: Sequence[str] = (),
    ignore_top_level: Sequence[str] = (),
) -> Iterator[TrackedEntry]:
    """Walk a package depth-first, yielding entries up to max_depth levels deep.

    Symlinked directories inside the package are yielded but not descended.
    """

    def walk(directory: Path, depth: int) -> Iterator[TrackedEntry]:
        with os.scandir(directory) as it:
            children = sorted(it, key=lambda e: e.name)
        for child in children:
            if _ignored(child.name, depth, ignore, ignore_top_level):
                continue
            source = Path(child.path)
            relative = source.relative_to(package.root)
            yield TrackedEntry(
                relative_path=relative,
                source=source,
                target=Path(home) / relative,
                depth=depth,
            )
            if depth < max_depth and child.is_dir(follow_symlinks=False):
                yield from walk(source, depth + 1)

    if not package.root.is_dir():
        return
    yield from walk(package.root, 1)
