"""Best-effort setup steps that run around package deployment.

Each step checks its own precondition first and reports ``SKIPPED`` when
there is nothing to do. A failing step never stops the steps after it.
"""

import enum
import logging
import os
import re
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import List

from .config import SetupConfig
from .context import RunContext
from .logging_setup import Reporter
from .utils import Utils

logger = logging.getLogger("dotsetup")

# A downloaded script that itself pipes a download into a shell.
UNSAFE_SCRIPT = re.compile(r"curl[^\n|]*\|\s*(ba|z)?sh\b")


class StepStatus(enum.Enum):
    SKIPPED = "skipped"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class StepResult:
    name: str
    status: StepStatus
    reason: str = ""


class Step:
    name = ""
    title = ""

    def __init__(self, config: SetupConfig):
        self.config = config

    def run(self, context: RunContext, reporter: Reporter) -> StepResult:
        raise NotImplementedError

    def skipped(self, reason: str = "") -> StepResult:
        return StepResult(self.name, StepStatus.SKIPPED, reason)

    def succeeded(self) -> StepResult:
        return StepResult(self.name, StepStatus.SUCCEEDED)

    def failed(self, reason: str) -> StepResult:
        return StepResult(self.name, StepStatus.FAILED, reason)


class RequiredDirsStep(Step):
    name = "required_dirs"
    title = "Create required directories"

    def run(self, context, reporter):
        reporter.status("Creating necessary directories...")
        missing = [d for d in self.config.required_dirs if not (context.home / d).is_dir()]
        if not missing:
            return self.skipped("all directories present")

        failures = []
        for rel in missing:
            path = context.home / rel
            try:
                path.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                logger.error(f"mkdir {path}: {e}")
                reporter.warning(f"Failed to create {path}")
                failures.append(rel)
        if failures:
            return self.failed(f"could not create {', '.join(failures)}")
        return self.succeeded()


class BackgroundStep(Step):
    name = "background"
    title = "Default background image"

    def run(self, context, reporter):
        bg_path = context.home / self.config.background["path"]
        if bg_path.is_file():
            reporter.status(f"Background image already exists at {bg_path}")
            return self.skipped("already present")

        reporter.status("Downloading a sample background image...")
        try:
            Utils.download(
                self.config.background["url"],
                bg_path,
                timeout=self.config.download_timeout,
            )
        except OSError as e:
            logger.error(f"Background download failed: {e}")
            reporter.warning(
                f"Failed to download sample background. Please add a background image at {bg_path}"
            )
            return self.failed(str(e))
        return self.succeeded()


class TmuxPluginManagerStep(Step):
    name = "tmux"
    title = "Tmux Plugin Manager"

    def run(self, context, reporter):
        tpm_dir = context.home / self.config.tmux_plugin_manager["path"]
        if tpm_dir.is_dir():
            reporter.status("Tmux Plugin Manager is already installed")
            return self.skipped("already installed")

        reporter.section("Installing Tmux Plugin Manager...")
        with reporter.console.status("[bold green]Cloning Tmux Plugin Manager..."):
            res = Utils.run_command(
                ["git", "clone", self.config.tmux_plugin_manager["repo"], str(tpm_dir)],
                check=False,
            )
        if res.returncode != 0:
            logger.error(f"git clone output: {res.stderr}")
            reporter.warning("Failed to install Tmux Plugin Manager")
            return self.failed(f"git clone exited with status {res.returncode}")
        reporter.status(
            "Remember to press prefix + I to install tmux plugins after starting tmux"
        )
        return self.succeeded()


class NeovimPluginsStep(Step):
    name = "neovim"
    title = "Neovim plugins"

    def run(self, context, reporter):
        if not Utils.command_exists("nvim"):
            reporter.warning("Neovim is not installed. Skipping plugin setup.")
            return self.skipped("nvim not installed")

        reporter.section("Setting up Neovim plugins (this might take a moment)...")
        data_home = Path(os.environ.get("XDG_DATA_HOME") or context.home / ".local/share")
        if not (data_home / "nvim" / "lazy").is_dir():
            reporter.warning("Lazy.nvim doesn't appear to be installed yet")
            reporter.status(
                "Attempting basic Neovim initialization to trigger plugin installation"
            )

        with reporter.console.status("[bold green]Syncing Neovim plugins..."):
            res = Utils.run_command(
                [
                    "nvim",
                    "--headless",
                    "-c",
                    "lua pcall(require, 'lazy')",
                    "-c",
                    "lua pcall(function() require('lazy').sync() end)",
                    "-c",
                    "qa!",
                ],
                check=False,
            )
        if res.returncode == 0:
            reporter.status("Neovim plugin setup attempt complete")
            return self.succeeded()

        logger.error(f"nvim output: {res.stderr}")
        reporter.warning("Failed to run Lazy plugin manager automatically")
        reporter.status(
            "You may need to open Neovim manually and run :Lazy sync to install plugins"
        )
        reporter.status("Trying alternative approach to initialize Neovim...")
        fallback = Utils.run_command(["nvim", "--headless", "+qa"], check=False)
        if fallback.returncode == 0:
            reporter.status("Basic Neovim initialization successful")
        else:
            reporter.warning("Failed basic Neovim initialization")
        return self.failed("Lazy sync failed")


class StarshipStep(Step):
    name = "starship"
    title = "Starship prompt"

    def run(self, context, reporter):
        if Utils.command_exists("starship"):
            reporter.status("Starship is already installed")
            return self.skipped("already installed")

        reporter.section("Installing Starship prompt...")
        with tempfile.TemporaryDirectory() as tmpdirname:
            script = Path(tmpdirname) / "install.sh"
            try:
                Utils.download(
                    self.config.starship["installer_url"],
                    script,
                    timeout=self.config.download_timeout,
                )
            except OSError as e:
                logger.error(f"Starship installer download failed: {e}")
                reporter.warning("Failed to download Starship install script")
                return self.failed(str(e))

            if UNSAFE_SCRIPT.search(script.read_text(errors="replace")):
                reporter.warning(
                    "Starship install script contains potentially unsafe patterns. "
                    "Skipping automatic installation."
                )
                reporter.status("Please review and install manually from https://starship.rs")
                return self.failed("installer pipes a download into a shell")

            with reporter.console.status("[bold green]Running Starship installer..."):
                res = Utils.run_command(["sh", str(script), "-y"], check=False)
            if res.returncode != 0:
                logger.error(f"Starship installer output: {res.stderr}")
                reporter.warning("Failed to install Starship")
                return self.failed(f"installer exited with status {res.returncode}")

        reporter.status("Starship installed successfully")
        return self.succeeded()


class DefaultShellStep(Step):
    name = "zsh"
    title = "Default shell"

    def __init__(self, config: SetupConfig, shells_file: Path = Path("/etc/shells")):
        super().__init__(config)
        self.shells_file = shells_file

    def run(self, context, reporter):
        zsh = shutil.which("zsh")
        if not zsh:
            reporter.warning("zsh not installed. Skipping shell change.")
            return self.skipped("zsh not installed")
        if os.environ.get("SHELL") == zsh:
            reporter.status("zsh is already the default shell")
            return self.skipped("already the default shell")

        reporter.section("Changing default shell to zsh...")
        try:
            shells = self.shells_file.read_text().split()
        except OSError:
            shells = []
        if zsh not in shells:
            reporter.warning(f"{zsh} is not in {self.shells_file}. Cannot change shell.")
            reporter.status(
                f"Please add {zsh} to {self.shells_file} and run 'chsh -s {zsh}' manually."
            )
            return self.failed(f"{zsh} not listed in {self.shells_file}")

        res = Utils.run_command(
            ["chsh", "-s", zsh], check=False, timeout=self.config.chsh_timeout
        )
        if res.returncode != 0:
            logger.error(f"chsh output: {res.stderr}")
            reporter.warning("Failed to change default shell to zsh")
            reporter.status(f"Please run 'chsh -s {zsh}' manually.")
            return self.failed(f"chsh exited with status {res.returncode}")

        reporter.status("Default shell changed to zsh. Will take effect on next login.")
        return self.succeeded()


PRE_DEPLOY_STEPS = [RequiredDirsStep, BackgroundStep]
POST_DEPLOY_STEPS = [
    TmuxPluginManagerStep,
    NeovimPluginsStep,
    StarshipStep,
    DefaultShellStep,
]


def build_steps(config: SetupConfig, phase: str) -> List[Step]:
    if phase == "pre":
        classes = PRE_DEPLOY_STEPS
    elif phase == "post":
        classes = POST_DEPLOY_STEPS
    else:
        raise ValueError(f"Unknown step phase: {phase}")
    enabled = set(config.steps)
    return [cls(config) for cls in classes if cls.name in enabled]


def run_steps(
    steps: List[Step], context: RunContext, reporter: Reporter
) -> List[StepResult]:
    results = []
    for step in steps:
        try:
            result = step.run(context, reporter)
        except Exception as e:
            logger.exception(f"Step {step.name} crashed")
            reporter.warning(f"{step.title} failed: {e}")
            result = step.failed(str(e))
        results.append(result)
    return results

