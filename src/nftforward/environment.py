"""
One-time startup checks: privileges, nftables availability, instance lock
"""

import fcntl
import logging
import os
import shutil
from typing import Optional

from .commands import CommandRunner
from .exceptions import CommandError, EnvironmentCheckError


logger = logging.getLogger(__name__)


def check_root() -> None:
    if os.geteuid() != 0:
        raise EnvironmentCheckError("This tool must be run as root (try sudo)")


def ensure_nft_installed(runner: Optional[CommandRunner] = None, binary: str = "nft",
                         auto_install: bool = True) -> None:
    """Install nftables with the system package manager when nft is missing"""
    if shutil.which(binary):
        return

    if not auto_install:
        raise EnvironmentCheckError(f"{binary} not found; install nftables and retry")

    runner = runner or CommandRunner()
    logger.warning("nftables not detected, trying to install it...")
    try:
        if shutil.which('apt-get'):
            runner.run(['apt-get', 'update', '-y'])
            runner.run(['apt-get', 'install', '-y', 'nftables'])
        elif shutil.which('dnf'):
            runner.run(['dnf', 'install', '-y', 'nftables'])
        else:
            raise EnvironmentCheckError("Cannot install nftables automatically; install it manually and retry")
    except CommandError as e:
        raise EnvironmentCheckError(f"Installing nftables failed: {e}") from e

    if not shutil.which(binary):
        raise EnvironmentCheckError(f"{binary} still not found after installing nftables")
    logger.info("nftables installed")


class InstanceLock:
    """Exclusive lock preventing two managers from editing the table at once"""

    def __init__(self, path: str):
        self.path = path
        self._fd: Optional[int] = None

    def acquire(self) -> None:
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        fd = os.open(self.path, os.O_RDWR | os.O_CREAT, 0o644)
        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except OSError:
            os.close(fd)
            raise EnvironmentCheckError(f"Another instance is running (lock held on {self.path})")
        os.ftruncate(fd, 0)
        os.write(fd, f"{os.getpid()}\n".encode())
        self._fd = fd

    def release(self) -> None:
        if self._fd is None:
            return
        fcntl.flock(self._fd, fcntl.LOCK_UN)
        os.close(self._fd)
        self._fd = None

    def __enter__(self):
        self.acquire()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()
        return False
