"""
Rule table store: the named nftables table and its two NAT chains
"""

import logging
from typing import Dict, List

from .engine import RuleEngine
from .ruleset import parse_ruleset, find_table


CHAIN_SPECS = {
    'prerouting': "{ type nat hook prerouting priority dstnat; policy accept; }",
    'postrouting': "{ type nat hook postrouting priority srcnat; policy accept; }",
}


class RuleTableStore:
    """
    Owns the forwarding table and its prerouting/postrouting chains.

    Existence is always probed on the live engine, never cached, so the
    ensure_* operations can be called before every mutation.
    """

    def __init__(self, engine: RuleEngine, table: str = "port_forward", family: str = "inet"):
        self.engine = engine
        self.table = table
        self.family = family
        self.logger = logging.getLogger(__name__)

    def probe(self) -> bool:
        """True when the table is present in the kernel"""
        return self.engine.table_exists(self.family, self.table)

    def ensure_table(self) -> bool:
        """Create the table if absent; returns True when it was created"""
        if self.probe():
            return False
        self.logger.debug(f"Creating table {self.family} {self.table}")
        self.engine.add_table(self.family, self.table)
        return True

    def ensure_chains(self) -> List[str]:
        """Create missing NAT chains; returns the names of created chains"""
        created = []
        for chain, spec in CHAIN_SPECS.items():
            if self.engine.chain_exists(self.family, self.table, chain):
                continue
            self.logger.debug(f"Creating chain {chain} in {self.table}")
            self.engine.add_chain(self.family, self.table, chain, spec)
            created.append(chain)
        return created

    def ensure(self) -> None:
        self.ensure_table()
        self.ensure_chains()

    def delete(self) -> bool:
        """Delete the whole table; returns False when there was nothing to delete"""
        if not self.probe():
            return False
        self.engine.delete_table(self.family, self.table)
        self.logger.debug(f"Deleted table {self.family} {self.table}")
        return True

    def rules(self) -> Dict[str, List[str]]:
        """Rule lines of each managed chain, empty when the table is absent"""
        result: Dict[str, List[str]] = {chain: [] for chain in CHAIN_SPECS}
        if not self.probe():
            return result

        listing = self.engine.list_table(self.family, self.table)
        table = find_table(parse_ruleset(listing), self.family, self.table)
        if table is None:
            return result

        for name in CHAIN_SPECS:
            chain = table.chains.get(name)
            if chain is not None:
                result[name] = list(chain.rules)
        return result
