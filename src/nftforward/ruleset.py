"""
Parser for nft list output
"""

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional


HANDLE_RE = re.compile(r'\s*# handle \d+$')
BLOCK_RE = re.compile(r'^(table|chain|set|map|flowtable|ct|counter|quota|limit|secmark|synproxy)\b(.*)\{$')


@dataclass
class NftChain:
    """A chain as listed by nft"""

    name: str
    spec: Optional[str] = None
    rules: List[str] = field(default_factory=list)


@dataclass
class NftTable:
    """A table as listed by nft, with its chains in listing order"""

    family: str
    name: str
    chains: Dict[str, NftChain] = field(default_factory=dict)

    def rule_count(self) -> int:
        return sum(len(chain.rules) for chain in self.chains.values())


def parse_ruleset(text: str) -> List[NftTable]:
    """
    Parse the output of 'nft list ruleset' (or 'nft list table')

    Only tables, chains and chain rules are kept. Sets, maps and other
    named objects are skipped. Trailing '# handle N' annotations are
    stripped from rules.
    """
    tables: List[NftTable] = []
    table: Optional[NftTable] = None
    chain: Optional[NftChain] = None
    stack: List[str] = []

    for raw in text.splitlines():
        line = HANDLE_RE.sub('', raw).strip()
        if not line or line.startswith('#'):
            continue

        if line == '}':
            if not stack:
                raise ValueError("Unbalanced '}' in ruleset listing")
            closed = stack.pop()
            if closed == 'chain':
                chain = None
            elif closed == 'table':
                table = None
            continue

        match = BLOCK_RE.match(line)
        if match:
            kind, rest = match.group(1), match.group(2).split()
            stack.append(kind)
            if kind == 'table' and not table and len(rest) >= 1:
                # "table inet name {" or "table name {" (ip family implied)
                family, name = (rest[0], rest[1]) if len(rest) >= 2 else ('ip', rest[0])
                table = NftTable(family=family, name=name)
                tables.append(table)
            elif kind == 'chain' and table is not None and rest:
                chain = NftChain(name=rest[0])
                table.chains[chain.name] = chain
            continue

        if chain is not None and stack and stack[-1] == 'chain':
            if chain.spec is None and not chain.rules and line.startswith('type ') and ' hook ' in line:
                chain.spec = line
            else:
                chain.rules.append(line)

    if stack:
        raise ValueError("Unterminated block in ruleset listing")
    return tables


def find_table(tables: List[NftTable], family: str, name: str) -> Optional[NftTable]:
    for table in tables:
        if table.family == family and table.name == name:
            return table
    return None
