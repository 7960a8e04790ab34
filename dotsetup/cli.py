"""Command-line entry point for dotsetup."""

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from . import __version__
from .config import SetupConfig, load_config
from .context import RunContext
from .deployer import Deployer, DeploymentSummary
from .errors import ConfigError, DependencyError
from .linkfarm import LinkFarm, StowLinkFarm
from .logging_setup import Reporter, close_logging, setup_logging
from .packages import ConfigPackage, list_packages
from .steps import StepResult, StepStatus, build_steps, run_steps
from .utils import Utils

logger = logging.getLogger("dotsetup")
console = Console(highlight=False)

STATUS_STYLE = {
    StepStatus.SUCCEEDED: "green",
    StepStatus.SKIPPED: "dim",
    StepStatus.FAILED: "red",
}


class DotfilesSetup:
    def __init__(
        self,
        context: RunContext,
        config: SetupConfig,
        reporter: Reporter,
        link_farm: Optional[LinkFarm] = None,
        only: Optional[List[str]] = None,
        skip_steps: bool = False,
    ):
        self.context = context
        self.config = config
        self.reporter = reporter
        self.link_farm = link_farm or StowLinkFarm()
        self.only = only or []
        self.skip_steps = skip_steps
        self.step_results: List[StepResult] = []

    def check_dependencies(self):
        self.reporter.section("Checking dependencies")
        missing = []
        for tool in self.config.required_tools:
            if Utils.command_exists(tool):
                self.reporter.status(f"{tool} is installed")
            else:
                self.reporter.error(f"{tool} is not installed. Please install {tool} first.")
                missing.append(tool)
        if missing:
            raise DependencyError(missing)

    def select_packages(self) -> List[ConfigPackage]:
        packages = list_packages(self.context.dotfiles_root)
        if not self.only:
            return packages
        by_name = {p.name: p for p in packages}
        selected = []
        for name in self.only:
            if name in by_name:
                selected.append(by_name[name])
            else:
                # deploy() warns and skips a package directory that is absent
                selected.append(ConfigPackage(name, self.context.dotfiles_root / name))
        return selected

    def run_phase(self, phase: str):
        if self.skip_steps:
            return
        steps = build_steps(self.config, phase)
        self.step_results.extend(run_steps(steps, self.context, self.reporter))

    def deploy(self) -> DeploymentSummary:
        self.reporter.section("Setting up configurations using stow...")
        packages = self.select_packages()
        if not packages:
            self.reporter.warning(f"No configuration packages found in {self.context.dotfiles_root}")
        deployer = Deployer(self.context, self.link_farm, self.reporter, self.config)
        return deployer.deploy_all(packages)

    def run(self) -> DeploymentSummary:
        self.reporter.section(f"Setting up dotfiles from {self.context.dotfiles_root}")
        self.check_dependencies()

        self.run_phase("pre")
        summary = self.deploy()
        self.run_phase("post")

        self.show_summary(summary)
        return summary

    def show_summary(self, summary: DeploymentSummary):
        self.reporter.section("Configuration complete!")
        out = self.reporter.console

        table = Table(title="Packages", show_header=True, header_style="bold")
        table.add_column("Package")
        table.add_column("Result")
        for name in summary.succeeded:
            table.add_row(name, "[green]linked[/green]")
        for name in summary.failed:
            table.add_row(name, "[red]failed[/red]")
        out.print(table)

        if self.step_results:
            steps = Table(title="Setup steps", show_header=True, header_style="bold")
            steps.add_column("Step")
            steps.add_column("Result")
            steps.add_column("Details")
            for result in self.step_results:
                style = STATUS_STYLE[result.status]
                steps.add_row(
                    result.name, f"[{style}]{result.status.value}[/{style}]", result.reason
                )
            out.print(steps)

        if summary.backups:
            out.print(
                f"{summary.backups} existing file(s) backed up to {self.context.backup_root}"
            )
        out.print(f"Log file created at: {self.context.log_file}")
        logger.info(
            f"Succeeded: {', '.join(summary.succeeded) or '-'}; "
            f"failed: {', '.join(summary.failed) or '-'}"
        )

        if summary.failed:
            self.reporter.warning("The following configurations had issues:")
            for name in summary.failed:
                out.print(f" - {name}")
            out.print(f"Check the log file for details: {self.context.log_file}")

        hints = [
            "Log out and log back in to apply all changes",
            "If using i3: press mod+Shift+r to reload i3 config",
            "If using Hyprland: start with 'Hyprland' command or from your display manager",
            "For tmux plugins: open tmux and press prefix + I to install plugins",
            f"Customize the background image at ~/{self.config.background['path']}",
        ]
        if not Utils.command_exists("nvim"):
            hints.append("Consider installing Neovim for a better editing experience")
        out.print(
            Panel(
                "\n".join(f"{i}. {hint}" for i, hint in enumerate(hints, 1)),
                title="What to do next",
                style="bold green" if summary.ok else "bold yellow",
            )
        )


# --- Argument Parsing ---
def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="dotsetup",
        description="Link dotfiles packages into the home directory with GNU Stow.",
    )
    parser.add_argument(
        "--dotfiles-dir",
        type=Path,
        default=Path.cwd(),
        help="Directory holding one subdirectory per configuration package (default: cwd)",
    )
    parser.add_argument(
        "--home",
        type=Path,
        default=Path(os.environ.get("DOTSETUP_HOME") or Path.home()),
        help="Target home directory (default: $DOTSETUP_HOME or ~)",
    )
    parser.add_argument("--config", type=Path, help="YAML configuration file")
    parser.add_argument(
        "-p",
        "--package",
        action="append",
        dest="packages",
        metavar="NAME",
        help="Only deploy this package (repeatable)",
    )
    parser.add_argument(
        "--skip-steps",
        action="store_true",
        help="Do not run the auxiliary setup steps",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Echo debug output")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None, link_farm: Optional[LinkFarm] = None) -> int:
    args = parse_args(argv)
    context = RunContext.create(args.dotfiles_dir, args.home)
    reporter = Reporter(console, verbose=args.verbose)

    try:
        setup_logging(context.log_file)
    except OSError as e:
        reporter.error(f"Cannot write log file {context.log_file}: {e}")
        return 1

    try:
        config = load_config(args.config)
        DotfilesSetup(
            context,
            config,
            reporter,
            link_farm=link_farm,
            only=args.packages,
            skip_steps=args.skip_steps,
        ).run()
    except ConfigError as e:
        reporter.error(str(e))
        return 1
    except DependencyError as e:
        reporter.error(f"{e}. Please install the missing dependencies and try again.")
        console.print(f"See {context.log_file} for more details")
        return 1
    except KeyboardInterrupt:
        reporter.error("Interrupted.")
        return 130
    except Exception as e:
        logger.exception("Setup crashed")
        console.print(Panel(f"Critical Error: {e}", style="bold red"))
        console.print(f"See {context.log_file} for more details")
        return 1
    finally:
        close_logging()
    return 0


def main_entry():
    sys.exit(main())


if __name__ == "__main__":
    main_entry()
