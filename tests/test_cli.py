from pathlib import Path

import pytest

from conftest import FakeLinkFarm, write
from dotsetup.cli import main, parse_args
from dotsetup.utils import Utils


@pytest.fixture
def tools(monkeypatch):
    available = {"stow", "git", "curl"}
    monkeypatch.setattr(Utils, "command_exists", staticmethod(lambda name: name in available))
    return available


def only_log(home: Path) -> Path:
    logs = list(home.glob(".dotfiles-setup-*.log"))
    assert len(logs) == 1
    return logs[0]


def test_missing_dependency_aborts_before_deploying(dotfiles, home, tools, capsys) -> None:
    tools.discard("stow")
    write(dotfiles / "zsh" / ".zshrc")
    write(home / ".zshrc", "mine")
    link_farm = FakeLinkFarm()

    code = main(["--dotfiles-dir", str(dotfiles), "--home", str(home), "--skip-steps"], link_farm=link_farm)

    assert code == 1
    assert link_farm.calls == []
    assert (home / ".zshrc").read_text() == "mine"
    assert not list(home.glob(".dotfiles-backup-*"))
    assert "stow is not installed" in only_log(home).read_text()


def test_full_run_links_and_logs(dotfiles, home, tools, capsys) -> None:
    write(dotfiles / "zsh" / ".zshrc", "tracked")
    write(dotfiles / "i3" / ".config" / "i3" / "config")
    write(home / ".zshrc", "mine")

    code = main(
        ["--dotfiles-dir", str(dotfiles), "--home", str(home), "--skip-steps"],
        link_farm=FakeLinkFarm(),
    )

    assert code == 0
    assert (home / ".zshrc").read_text() == "tracked"
    backups = list(home.glob(".dotfiles-backup-*"))
    assert len(backups) == 1
    assert (backups[0] / ".zshrc").read_text() == "mine"

    log = only_log(home).read_text()
    assert log.startswith("Dotfiles setup log")
    assert "Succeeded: i3, zsh" in log
    assert "Log file created at" in capsys.readouterr().out


def test_package_failures_still_exit_zero(dotfiles, home, tools, capsys) -> None:
    write(dotfiles / "alacritty" / ".config" / "alacritty" / "alacritty.toml")
    write(dotfiles / "tmux" / ".tmux.conf")

    code = main(
        ["--dotfiles-dir", str(dotfiles), "--home", str(home), "--skip-steps"],
        link_farm=FakeLinkFarm(fail_for={"alacritty"}),
    )

    assert code == 0
    out = capsys.readouterr().out
    assert "The following configurations had issues" in out
    assert " - alacritty" in out
    assert (home / ".tmux.conf").is_symlink()


def test_package_option_limits_deployment(dotfiles, home, tools) -> None:
    write(dotfiles / "zsh" / ".zshrc")
    write(dotfiles / "tmux" / ".tmux.conf")
    link_farm = FakeLinkFarm()

    code = main(
        ["--dotfiles-dir", str(dotfiles), "--home", str(home), "--skip-steps", "-p", "tmux"],
        link_farm=link_farm,
    )

    assert code == 0
    assert link_farm.calls == ["tmux"]
    assert not (home / ".zshrc").exists()


def test_bad_config_exits_non_zero(dotfiles, home, tools, tmp_path: Path) -> None:
    config = write(tmp_path / "setup.yaml", "max_depth: [")

    code = main(
        ["--dotfiles-dir", str(dotfiles), "--home", str(home), "--config", str(config)],
        link_farm=FakeLinkFarm(),
    )

    assert code == 1


def test_parse_args_defaults(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("DOTSETUP_HOME", str(tmp_path))

    args = parse_args([])

    assert args.home == tmp_path
    assert args.packages is None
    assert not args.skip_steps
