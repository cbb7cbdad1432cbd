"""
Ruleset persistence: dump the live ruleset to disk and load it on boot
"""

import glob
import logging
import os
import shutil
from datetime import datetime
from typing import Callable, List, Optional

from .commands import CommandRunner
from .engine import RuleEngine
from .exceptions import CommandError, PersistenceError


CONFIG_HEADER = "#!/usr/sbin/nft -f\n\nflush ruleset\n\n"
BACKUP_SUFFIX = ".bak_"
BACKUP_TIME_FORMAT = "%Y-%m-%d_%H:%M:%S"


class ServiceControl:
    """Boot-time service manager capabilities"""

    def enable(self, unit: str) -> None:
        raise NotImplementedError

    def restart(self, unit: str) -> None:
        raise NotImplementedError


class SystemctlService(ServiceControl):
    """ServiceControl backed by systemctl"""

    def __init__(self, runner: Optional[CommandRunner] = None):
        self.runner = runner or CommandRunner()

    def enable(self, unit: str) -> None:
        self.runner.run(['systemctl', 'enable', unit])

    def restart(self, unit: str) -> None:
        self.runner.run(['systemctl', 'restart', unit])


class RulesetPersistence:
    """Keep the on-disk nftables configuration in sync with the kernel"""

    def __init__(self, engine: RuleEngine, service: ServiceControl,
                 config_file: str = "/etc/nftables.conf", unit: str = "nftables",
                 backup: bool = True, clock: Callable[[], datetime] = datetime.now):
        self.engine = engine
        self.service = service
        self.config_file = config_file
        self.unit = unit
        self.backup_enabled = backup
        self.clock = clock
        self.logger = logging.getLogger(__name__)

    def persist(self) -> Optional[str]:
        """
        Back up the current file, dump the full live ruleset and enable
        the reload service

        Returns:
            Path of the backup written, or None when there was no prior file
        """
        self.logger.info("Saving ruleset to configuration file and enabling it on boot...")
        backup_path = self.backup() if self.backup_enabled else None

        ruleset = self.engine.list_ruleset()
        try:
            directory = os.path.dirname(self.config_file)
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(self.config_file, 'w') as f:
                f.write(CONFIG_HEADER)
                f.write(ruleset)
        except OSError as e:
            raise PersistenceError(f"Failed to write {self.config_file}: {e}") from e

        self._activate_service()
        self.logger.info("Ruleset persisted")
        return backup_path

    def backup(self) -> Optional[str]:
        """Copy the configuration file to a timestamped sibling if it exists"""
        if not os.path.isfile(self.config_file):
            return None

        stamp = self.clock().strftime(BACKUP_TIME_FORMAT)
        base = f"{self.config_file}{BACKUP_SUFFIX}{stamp}"
        backup_path = base
        # several persists within one second must not overwrite each other
        counter = 1
        while os.path.exists(backup_path):
            backup_path = f"{base}.{counter}"
            counter += 1
        try:
            shutil.copy2(self.config_file, backup_path)
        except OSError as e:
            raise PersistenceError(f"Failed to back up {self.config_file}: {e}") from e
        self.logger.debug(f"Backed up {self.config_file} to {backup_path}")
        return backup_path

    def list_backups(self) -> List[str]:
        """Backup files, newest first"""
        pattern = f"{glob.escape(self.config_file)}{BACKUP_SUFFIX}*"
        return sorted(glob.glob(pattern), reverse=True)

    def restore(self, backup_path: str) -> None:
        """Load a backup into the kernel atomically, then persist it"""
        try:
            with open(backup_path, 'r') as f:
                text = f.read()
        except OSError as e:
            raise PersistenceError(f"Cannot read backup {backup_path}: {e}") from e

        self.logger.info(f"Restoring ruleset from {backup_path}")
        self.engine.load_ruleset(text)
        self.persist()

    def _activate_service(self) -> None:
        try:
            self.service.enable(self.unit)
            self.service.restart(self.unit)
        except CommandError as e:
            self.logger.warning(f"Could not enable/restart {self.unit}: {e}")
