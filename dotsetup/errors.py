"""Exception hierarchy for dotsetup."""


class DotsetupError(Exception):
    """Base class for every error raised by dotsetup."""


class ConfigError(DotsetupError):
    """Configuration file could not be parsed or holds invalid values."""


class DependencyError(DotsetupError):
    """A required external tool is missing."""

    def __init__(self, missing):
        self.missing = list(missing)
        super().__init__(f"Missing required tools: {', '.join(self.missing)}")


class BackupError(DotsetupError):
    """An existing target could not be moved into the backup root."""


class PrepareError(DotsetupError):
    """A parent directory for a target could not be created."""


class LinkFarmError(DotsetupError):
    """The link-farm manager refused or failed to link a package."""

    def __init__(self, message: str, output: str = ""):
        super().__init__(message)
        self.output = output


class DeployError(DotsetupError):
    """A configuration package failed to deploy."""
