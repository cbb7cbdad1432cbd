"""
Port-forward manager: wires validation, table store, rule builder and persistence
"""

import logging
from typing import Dict, List, Optional

from .commands import CommandRunner
from .config import Config
from .engine import NftEngine, RuleEngine
from .environment import check_root, ensure_nft_installed
from .kernel import KernelParams, KernelPrerequisites, SysctlParams
from .models import ForwardingIntent, ForwardingRule
from .notifications import DiscordNotifier
from .persistence import RulesetPersistence, ServiceControl, SystemctlService
from .rules import ForwardingRuleBuilder
from .table import RuleTableStore


class PortForwardManager:
    """High-level operations behind the menu and the CLI"""

    def __init__(self, config: Config, engine: RuleEngine, kernel_params: KernelParams,
                 service: ServiceControl, notifier: Optional[DiscordNotifier] = None):
        self.config = config
        self.engine = engine
        self.logger = logging.getLogger(__name__)

        self.store = RuleTableStore(
            engine,
            table=config.get('nftables.table', 'port_forward'),
            family=config.get('nftables.family', 'inet'),
        )
        self.builder = ForwardingRuleBuilder(
            engine, self.store, strict=bool(config.get('validation.strict', False))
        )
        self.persistence = RulesetPersistence(
            engine,
            service,
            config_file=config.get('nftables.config_file', '/etc/nftables.conf'),
            unit=config.get('nftables.service', 'nftables'),
            backup=bool(config.get('nftables.backup', True)),
        )
        self.prerequisites = KernelPrerequisites(
            kernel_params,
            config.get('kernel.sysctl_file', '/etc/sysctl.d/99-custom-forward-bbr.conf'),
            enable_bbr=bool(config.get('kernel.enable_bbr', True)),
        )
        self.notifier = notifier or DiscordNotifier(config)

    @classmethod
    def from_config(cls, config: Config) -> "PortForwardManager":
        """Build a manager talking to the real nft, sysctl and systemctl"""
        runner = CommandRunner()
        engine = NftEngine(runner, binary=config.get('nftables.binary', 'nft'))
        return cls(config, engine, SysctlParams(runner), SystemctlService(runner))

    @property
    def strict(self) -> bool:
        return self.builder.strict

    def check_environment(self) -> None:
        """Fatal startup checks; raises EnvironmentCheckError"""
        check_root()
        ensure_nft_installed(
            binary=self.config.get('nftables.binary', 'nft'),
            auto_install=bool(self.config.get('environment.auto_install', True)),
        )

    def ensure_prerequisites(self) -> List[str]:
        return self.prerequisites.ensure_prerequisites()

    def add_forward(self, intent: ForwardingIntent) -> List[ForwardingRule]:
        """Install an intent's four rules and persist the result"""
        rules = self.builder.add_forwarding_rule(intent)
        self.logger.info(
            f"Forwarding {intent.family.label} port {intent.local_port} to {rules[0].destination} (TCP/UDP)"
        )
        self.persistence.persist()
        self.notifier.notify_forward_added(rules)
        return rules

    def clear_all(self) -> bool:
        """Delete the whole forwarding table; False when it did not exist"""
        if not self.store.delete():
            self.logger.info("No forwarding table found, nothing to clear")
            return False

        self.logger.info("Forwarding rules removed from the kernel")
        self.persistence.persist()
        self.notifier.notify_rules_cleared(self.store.table)
        return True

    def ruleset(self) -> str:
        return self.engine.list_ruleset()

    def forwards(self) -> Dict[str, List[str]]:
        return self.store.rules()

    def list_backups(self) -> List[str]:
        return self.persistence.list_backups()

    def restore(self, backup_path: str) -> None:
        self.persistence.restore(backup_path)
        self.notifier.notify_ruleset_restored(backup_path)
