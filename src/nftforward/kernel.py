"""
Kernel prerequisites: IP forwarding and BBR congestion control
"""

import logging
import os
from typing import List, Optional

from .commands import CommandRunner
from .exceptions import PersistenceError


class KernelParams:
    """Read and reload kernel parameters"""

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def reload(self, path: str) -> bool:
        raise NotImplementedError


class SysctlParams(KernelParams):
    """KernelParams backed by the sysctl tool"""

    def __init__(self, runner: Optional[CommandRunner] = None):
        self.runner = runner or CommandRunner()

    def get(self, key: str) -> Optional[str]:
        result = self.runner.run(['sysctl', '-n', key], check=False)
        if result.returncode != 0:
            return None
        return result.stdout.strip()

    def reload(self, path: str) -> bool:
        if self.runner.succeeds(['sysctl', '-p', path]):
            return True
        return self.runner.succeeds(['sysctl', '--system'])


class KernelPrerequisites:
    """Make sure forwarding (and optionally BBR) is enabled before rules go in"""

    def __init__(self, params: KernelParams, sysctl_file: str, enable_bbr: bool = True):
        self.params = params
        self.sysctl_file = sysctl_file
        self.enable_bbr = enable_bbr
        self.logger = logging.getLogger(__name__)

    def missing_settings(self) -> List[str]:
        """Setting lines needed for every prerequisite not currently satisfied"""
        lines = []
        if self.params.get('net.ipv4.ip_forward') != '1':
            lines.append('net.ipv4.ip_forward = 1')
        if self.params.get('net.ipv6.conf.all.forwarding') != '1':
            lines.append('net.ipv6.conf.all.forwarding = 1')
        if self.enable_bbr and self.params.get('net.ipv4.tcp_congestion_control') != 'bbr':
            lines.append('net.core.default_qdisc = fq')
            lines.append('net.ipv4.tcp_congestion_control = bbr')
        return lines

    def ensure_prerequisites(self) -> List[str]:
        """
        Append missing settings, de-duplicate the file and reload sysctls

        Returns:
            The setting lines that were appended (empty when nothing changed)
        """
        self.logger.info("Checking kernel parameters (IPv4/IPv6 forwarding, BBR)")
        lines = self.missing_settings()
        if not lines:
            self.logger.debug("Kernel prerequisites already satisfied")
            return []

        try:
            directory = os.path.dirname(self.sysctl_file)
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(self.sysctl_file, 'a') as f:
                for line in lines:
                    f.write(f"{line}\n")
            self._dedupe()
        except OSError as e:
            raise PersistenceError(f"Failed to write kernel settings to {self.sysctl_file}: {e}") from e

        if not self.params.reload(self.sysctl_file):
            self.logger.warning(
                f"Could not reload kernel parameters; settings in {self.sysctl_file} apply after reboot"
            )
        else:
            self.logger.info("Kernel parameters updated")

        if self.enable_bbr and self.params.get('net.ipv4.tcp_congestion_control') != 'bbr':
            self.logger.warning("BBR is not active yet; the kernel may need the tcp_bbr module or a reboot")

        return lines

    def _dedupe(self) -> None:
        """Sort the settings file and drop duplicate lines"""
        with open(self.sysctl_file, 'r') as f:
            lines = {line.rstrip('\n') for line in f if line.strip()}
        with open(self.sysctl_file, 'w') as f:
            for line in sorted(lines):
                f.write(f"{line}\n")
