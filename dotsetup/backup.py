"""Backup of pre-existing targets and preparation of target directories."""

import enum
import logging
import os
import shutil
from pathlib import Path
from typing import List, Optional

from .context import RunContext
from .errors import BackupError, PrepareError
from .packages import list_packages

logger = logging.getLogger("dotsetup")


class BackupOutcome(enum.Enum):
    ABSENT = "absent"
    MANAGED = "managed"
    DESCENDED = "descended"
    BACKED_UP = "backed_up"


class BackupManager:
    """Moves real files out of the way before the link farm runs.

    Every displaced entry lands at ``<backup_root>/<relative_path>``. The
    backup root is created lazily, on the first entry that needs it.
    """

    def __init__(self, context: RunContext):
        self.context = context
        self.backed_up: List[Path] = []
        self._managed_roots: Optional[List[Path]] = None

    @property
    def managed_roots(self) -> List[Path]:
        """The dotfiles root plus the real location of every package in it."""
        if self._managed_roots is None:
            roots = [self.context.dotfiles_root]
            for package in list_packages(self.context.dotfiles_root):
                real = Path(os.path.realpath(package.root))
                if self._contains(real, self.context.home):
                    logger.warning(f"Package {package.name} resolves to {real}, which holds {self.context.home}")
                    continue
                if real not in roots:
                    roots.append(real)
            self._managed_roots = roots
        return self._managed_roots

    def is_managed(self, target: Path) -> bool:
        """True when target already resolves into the dotfiles root or a package."""
        real = Path(os.path.realpath(target))
        return any(self._contains(root, real) for root in self.managed_roots)

    @staticmethod
    def _contains(root: Path, path: Path) -> bool:
        try:
            path.relative_to(root)
        except ValueError:
            return False
        return True

    def backup_if_needed(
        self, target: Path, relative_path: Path, descend: bool = False
    ) -> BackupOutcome:
        target = Path(target)
        if not os.path.lexists(target):
            return BackupOutcome.ABSENT

        if self.is_managed(target):
            logger.debug(f"{target} already points into {self.context.dotfiles_root}")
            return BackupOutcome.MANAGED

        is_link = target.is_symlink()
        # a symlinked directory is walked through, never moved
        if descend and target.is_dir():
            return BackupOutcome.DESCENDED

        dest = self.context.backup_root / relative_path
        if os.path.lexists(dest):
            raise BackupError(
                f"Backup destination {dest} already exists; refusing to overwrite "
                f"an earlier backup of {target}"
            )

        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise BackupError(f"Failed to create backup directory {dest.parent}: {e}") from e

        try:
            self._copy(target, dest, is_link)
        except (OSError, shutil.Error) as e:
            self._discard(dest)
            raise BackupError(f"Failed to copy {target} to {dest}: {e}") from e

        try:
            if is_link or not target.is_dir():
                target.unlink()
            else:
                shutil.rmtree(target)
        except OSError as e:
            raise BackupError(
                f"Copied {target} to {dest} but could not remove the original: {e}"
            ) from e

        self.backed_up.append(Path(relative_path))
        logger.info(f"Backed up {target} to {dest}")
        return BackupOutcome.BACKED_UP

    @staticmethod
    def _copy(source: Path, dest: Path, is_link: bool):
        if is_link:
            os.symlink(os.readlink(source), dest)
        elif source.is_dir():
            shutil.copytree(source, dest, symlinks=True)
        else:
            shutil.copy2(source, dest, follow_symlinks=False)

    @staticmethod
    def _discard(dest: Path):
        try:
            if dest.is_dir() and not dest.is_symlink():
                shutil.rmtree(dest)
            elif os.path.lexists(dest):
                dest.unlink()
        except OSError as e:
            logger.warning(f"Could not remove partial backup {dest}: {e}")


class DirectoryPreparer:
    @staticmethod
    def ensure_parent_dir(target: Path):
        parent = Path(target).parent
        try:
            parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise PrepareError(f"Failed to create directory {parent}: {e}") from e
