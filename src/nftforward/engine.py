"""
Firewall engine interface and its nftables implementation
"""

import logging
from typing import List, Optional

from .commands import CommandRunner


class RuleEngine:
    """Capabilities the manager needs from a firewall engine"""

    def table_exists(self, family: str, table: str) -> bool:
        raise NotImplementedError

    def chain_exists(self, family: str, table: str, chain: str) -> bool:
        raise NotImplementedError

    def add_table(self, family: str, table: str) -> None:
        raise NotImplementedError

    def add_chain(self, family: str, table: str, chain: str, spec: str) -> None:
        raise NotImplementedError

    def delete_table(self, family: str, table: str) -> None:
        raise NotImplementedError

    def apply_batch(self, lines: List[str]) -> None:
        """Apply nft commands as one transaction (all or nothing)"""
        raise NotImplementedError

    def list_ruleset(self) -> str:
        raise NotImplementedError

    def list_table(self, family: str, table: str) -> str:
        raise NotImplementedError

    def load_ruleset(self, text: str) -> None:
        """Replace the live ruleset with text in one transaction"""
        raise NotImplementedError


class NftEngine(RuleEngine):
    """RuleEngine backed by the nft command-line tool"""

    def __init__(self, runner: Optional[CommandRunner] = None, binary: str = "nft"):
        self.runner = runner or CommandRunner()
        self.nft_cmd = binary
        self.logger = logging.getLogger(__name__)

    def _nft(self, *args: str) -> List[str]:
        return [self.nft_cmd, *args]

    def table_exists(self, family: str, table: str) -> bool:
        return self.runner.succeeds(self._nft('list', 'table', family, table))

    def chain_exists(self, family: str, table: str, chain: str) -> bool:
        return self.runner.succeeds(self._nft('list', 'chain', family, table, chain))

    def add_table(self, family: str, table: str) -> None:
        self.logger.debug(f"Creating table {family} {table}")
        self.runner.run(self._nft('add', 'table', family, table))

    def add_chain(self, family: str, table: str, chain: str, spec: str) -> None:
        self.logger.debug(f"Creating chain {family} {table} {chain}")
        self.runner.run(self._nft('add', 'chain', family, table, chain, spec))

    def delete_table(self, family: str, table: str) -> None:
        self.runner.run(self._nft('delete', 'table', family, table))

    def apply_batch(self, lines: List[str]) -> None:
        script = "\n".join(lines) + "\n"
        self.runner.run(self._nft('-f', '-'), input_text=script)

    def list_ruleset(self) -> str:
        return self.runner.run(self._nft('list', 'ruleset')).stdout

    def list_table(self, family: str, table: str) -> str:
        return self.runner.run(self._nft('list', 'table', family, table)).stdout

    def load_ruleset(self, text: str) -> None:
        self.apply_batch(["flush ruleset", text])
