"""Per-run state shared by every component."""

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

TIMESTAMP_FORMAT = "%Y%m%d-%H%M%S"
BACKUP_PREFIX = ".dotfiles-backup-"
LOG_PREFIX = ".dotfiles-setup-"


@dataclass(frozen=True)
class RunContext:
    dotfiles_root: Path
    home: Path
    timestamp: str
    started_at: datetime

    @classmethod
    def create(
        cls, dotfiles_root: Path, home: Path, now: Optional[datetime] = None
    ) -> "RunContext":
        """Build the context once, fixing the run timestamp."""
        now = now or datetime.now()
        return cls(
            dotfiles_root=Path(dotfiles_root).expanduser().resolve(),
            home=Path(home).expanduser().resolve(),
            timestamp=now.strftime(TIMESTAMP_FORMAT),
            started_at=now,
        )

    @property
    def backup_root(self) -> Path:
        return self.home / f"{BACKUP_PREFIX}{self.timestamp}"

    @property
    def log_file(self) -> Path:
        return self.home / f"{LOG_PREFIX}{self.timestamp}.log"

    def relative_to_home(self, path: Path) -> str:
        """Render a path as ~/... when it lives under home."""
        try:
            return "~/" + Path(path).relative_to(self.home).as_posix()
        except ValueError:
            return str(path)
