"""Subprocess and network helpers."""

import logging
import os
import shutil
import subprocess
import tempfile
import urllib.request
from pathlib import Path
from typing import List, Optional

logger = logging.getLogger("dotsetup")


class Utils:
    @staticmethod
    def run_command(
        cmd: List[str],
        check: bool = True,
        quiet: bool = True,
        timeout: Optional[int] = None,
        cwd: Optional[Path] = None,
        merge_output: bool = False,
    ) -> subprocess.CompletedProcess:
        """Execute a command safely."""
        cmd_str = " ".join(str(part) for part in cmd)
        logger.info(f"Executing: {cmd_str}")

        try:
            result = subprocess.run(
                [str(part) for part in cmd],
                check=check,
                stdout=subprocess.PIPE if quiet else None,
                stderr=(subprocess.STDOUT if merge_output else subprocess.PIPE)
                if quiet
                else None,
                text=True,
                timeout=timeout,
                cwd=str(cwd) if cwd else None,
            )
            return result
        except subprocess.CalledProcessError as e:
            logger.error(f"Command failed: {cmd_str}")
            if quiet:
                logger.error(f"Stderr: {e.stderr}")
            raise
        except subprocess.TimeoutExpired:
            logger.error(f"Command timed out after {timeout}s: {cmd_str}")
            if check:
                raise
            return subprocess.CompletedProcess(cmd, 1, "", "Timeout")
        except FileNotFoundError:
            logger.error(f"Command not found: {cmd[0]}")
            if check:
                raise
            return subprocess.CompletedProcess(cmd, 127, "", f"{cmd[0]}: not found")

    @staticmethod
    def command_exists(name: str) -> bool:
        return shutil.which(name) is not None

    @staticmethod
    def download(url: str, dest: Path, timeout: int = 30):
        """Fetch url into dest; dest is only replaced once the body is complete."""
        dest = Path(dest)
        dest.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=dest.parent, prefix=f".{dest.name}.")
        try:
            with os.fdopen(fd, "wb") as out, urllib.request.urlopen(
                url, timeout=timeout
            ) as response:
                shutil.copyfileobj(response, out)
            os.replace(tmp_name, dest)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
