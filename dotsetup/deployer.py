"""Per-package deployment: backup, prepare, then link."""

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from .backup import BackupManager, BackupOutcome, DirectoryPreparer
from .config import SetupConfig
from .context import RunContext
from .errors import BackupError, DeployError, LinkFarmError, PrepareError
from .linkfarm import LinkFarm
from .logging_setup import Reporter
from .packages import ConfigPackage, TrackedEntry, iter_entries

logger = logging.getLogger("dotsetup")


@dataclass
class DeploymentSummary:
    succeeded: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    backups: int = 0

    @property
    def ok(self) -> bool:
        return not self.failed


class Deployer:
    def __init__(
        self,
        context: RunContext,
        link_farm: LinkFarm,
        reporter: Reporter,
        config: Optional[SetupConfig] = None,
    ):
        self.context = context
        self.link_farm = link_farm
        self.reporter = reporter
        self.config = config or SetupConfig()
        self.backups = BackupManager(context)
        self.preparer = DirectoryPreparer()

    def deploy(self, package: ConfigPackage):
        """Deploy one package; raises DeployError when it cannot be fully linked."""
        self.reporter.status(f"Setting up {package.name}...")

        if not package.root.is_dir():
            self.reporter.warning(f"Directory {package.root} does not exist. Skipping.")
            return

        has_error = False
        entries = iter_entries(
            package,
            self.context.home,
            max_depth=self.config.max_depth,
            ignore=self.config.ignore,
            ignore_top_level=self.config.ignore_top_level,
        )
        try:
            for entry in entries:
                if not self._prepare_entry(entry):
                    has_error = True
        except OSError as e:
            self.reporter.error(f"Failed to read {package.root}: {e}")
            has_error = True

        try:
            log = self.link_farm.materialize(
                package.name, self.context.dotfiles_root, self.context.home
            )
        except LinkFarmError as e:
            self.reporter.error(f"Failed to stow {package.name}")
            self.reporter.debug(f"Stow output: {e.output}")
            raise DeployError(f"{package.name}: {e}") from e

        self.reporter.debug(f"Stow output for {package.name}:")
        self.reporter.debug(log.output)
        for line in log.actions:
            self.reporter.echo(line)

        if has_error:
            raise DeployError(
                f"{package.name}: some entries could not be backed up or prepared"
            )

    def _prepare_entry(self, entry: TrackedEntry) -> bool:
        descend = entry.is_dir and entry.depth < self.config.max_depth
        try:
            outcome = self.backups.backup_if_needed(
                entry.target, entry.relative_path, descend=descend
            )
        except BackupError as e:
            self.reporter.error(f"Failed to backup {entry.target}: {e}")
            return False

        if outcome is BackupOutcome.BACKED_UP:
            self.reporter.warning(
                f"Backed up {self.context.relative_to_home(entry.target)} to "
                f"{self.context.backup_root / entry.relative_path}"
            )

        try:
            self.preparer.ensure_parent_dir(entry.target)
        except PrepareError as e:
            self.reporter.error(str(e))
            return False
        return True

    def deploy_all(self, packages: Iterable[ConfigPackage]) -> DeploymentSummary:
        summary = DeploymentSummary()
        for package in packages:
            try:
                self.deploy(package)
            except DeployError as e:
                logger.error(str(e))
                self.reporter.warning(
                    f"Failed to set up {package.name}. Continuing with other configs..."
                )
                summary.failed.append(package.name)
            else:
                summary.succeeded.append(package.name)
        summary.backups = len(self.backups.backed_up)
        return summary
