"""
External command execution
"""

import logging
import subprocess
from typing import List, Optional

from .exceptions import CommandError


class CommandRunner:
    """Run system commands and report failures"""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def run(self, cmd: List[str], input_text: Optional[str] = None,
            check: bool = True) -> subprocess.CompletedProcess:
        """
        Run a command and capture its output

        Args:
            cmd: Command and arguments
            input_text: Text fed to the command's stdin
            check: Raise CommandError when the command exits non-zero

        Returns:
            The completed process
        """
        self.logger.debug(f"Running: {' '.join(cmd)}")
        try:
            result = subprocess.run(
                cmd,
                input=input_text,
                capture_output=True,
                text=True,
                check=False
            )
        except (FileNotFoundError, PermissionError) as e:
            if check:
                raise CommandError(cmd, 127, str(e)) from e
            return subprocess.CompletedProcess(cmd, 127, "", str(e))

        if result.returncode != 0:
            self.logger.debug(f"Command exited {result.returncode}: {result.stderr.strip()}")
            if check:
                raise CommandError(cmd, result.returncode, result.stderr)
        return result

    def succeeds(self, cmd: List[str]) -> bool:
        """Probe form of run(): True when the command exits 0"""
        return self.run(cmd, check=False).returncode == 0
