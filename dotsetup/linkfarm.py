"""Link-farm managers that materialize a package as symlinks under home."""

import abc
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List

from .errors import LinkFarmError
from .utils import Utils

logger = logging.getLogger("dotsetup")

ACTION_PREFIXES = ("LINK:", "MKDIR:", "UNLINK:")


@dataclass(frozen=True)
class ActionLog:
    output: str

    @property
    def actions(self) -> List[str]:
        return [
            line.strip()
            for line in self.output.splitlines()
            if line.strip().startswith(ACTION_PREFIXES)
        ]


class LinkFarm(abc.ABC):
    @abc.abstractmethod
    def materialize(self, package_name: str, working_dir: Path, target: Path) -> ActionLog:
        """Link every file of package_name into target, or raise LinkFarmError."""


class StowLinkFarm(LinkFarm):
    """GNU Stow, run from the dotfiles root with verbose output."""

    def __init__(self, executable: str = "stow"):
        self.executable = executable

    def materialize(self, package_name: str, working_dir: Path, target: Path) -> ActionLog:
        cmd = [self.executable, "-v", f"--target={target}", package_name]
        res = Utils.run_command(cmd, check=False, cwd=working_dir, merge_output=True)
        output = res.stdout or ""
        if res.returncode != 0:
            if res.returncode == 127 and not output:
                output = res.stderr or ""
            raise LinkFarmError(
                f"{self.executable} exited with status {res.returncode} for {package_name}",
                output=output,
            )
        return ActionLog(output)
