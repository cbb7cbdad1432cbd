"""
Forwarding rule builder: expands an intent into its DNAT and masquerade rules
"""

import logging
from typing import List, Optional, Tuple

from .engine import RuleEngine
from .exceptions import InvalidIntentError, PortForwardError, RuleInstallError
from .models import ForwardingIntent, ForwardingRule, NatType, Protocol
from .table import RuleTableStore
from .validators import validate_address, validate_port


def validate_intent(intent: ForwardingIntent, strict: bool = False) -> None:
    """Raise InvalidIntentError naming the first invalid field"""
    if not validate_port(intent.local_port):
        raise InvalidIntentError('local_port', intent.local_port)
    if not validate_address(intent.family, intent.remote_address, strict=strict):
        raise InvalidIntentError('remote_address', intent.remote_address)
    if not validate_port(intent.target_port):
        raise InvalidIntentError('remote_port', intent.remote_port)


def build_rules(intent: ForwardingIntent) -> List[ForwardingRule]:
    """The four rules of an intent: DNAT tcp/udp, then masquerade tcp/udp"""
    local_port = int(intent.local_port)
    remote_port = int(intent.target_port)
    return [
        ForwardingRule(
            address_family=intent.family,
            protocol=protocol,
            nat_type=nat_type,
            local_port=local_port,
            remote_address=intent.remote_address,
            remote_port=remote_port,
        )
        for nat_type in (NatType.DNAT, NatType.MASQUERADE)
        for protocol in (Protocol.TCP, Protocol.UDP)
    ]


class ForwardingRuleBuilder:
    """Install forwarding rule-sets into the managed table"""

    def __init__(self, engine: RuleEngine, store: RuleTableStore, strict: bool = False):
        self.engine = engine
        self.store = store
        self.strict = strict
        self.logger = logging.getLogger(__name__)

    def build(self, intent: ForwardingIntent) -> List[ForwardingRule]:
        validate_intent(intent, strict=self.strict)
        return build_rules(intent)

    def batch_lines(self, rules: List[ForwardingRule]) -> List[str]:
        prefix = f"add rule {self.store.family} {self.store.table}"
        return [f"{prefix} {rule.chain} {rule.statement()}" for rule in rules]

    def apply_all(self, rules: List[ForwardingRule]) -> Tuple[List[ForwardingRule], Optional[PortForwardError]]:
        """
        Submit rules as a single nft transaction

        Returns:
            (applied, error): all rules and None on success, or an empty
            list and the error, since the engine rejects the whole batch
        """
        if not rules:
            return [], None
        try:
            self.engine.apply_batch(self.batch_lines(rules))
        except PortForwardError as e:
            return [], e
        return list(rules), None

    def add_forwarding_rule(self, intent: ForwardingIntent) -> List[ForwardingRule]:
        """Validate intent, ensure table/chains exist and install its four rules"""
        rules = self.build(intent)
        self.store.ensure()

        self.logger.info(f"Writing {intent.family.label} forwarding rules...")
        applied, error = self.apply_all(rules)
        if error is not None:
            raise RuleInstallError(applied, error)

        for rule in applied:
            self.logger.debug(f"Installed: {rule.describe()}")
        return applied
