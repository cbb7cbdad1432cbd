"""Shared pytest fixtures: in-memory fakes for nft, sysctl and systemctl."""

import copy
import subprocess

import pytest

from nftforward.config import Config
from nftforward.engine import RuleEngine
from nftforward.exceptions import CommandError
from nftforward.kernel import KernelParams
from nftforward.manager import PortForwardManager
from nftforward.persistence import ServiceControl
from nftforward.ruleset import NftChain, NftTable, parse_ruleset, find_table


class FakeRuleEngine(RuleEngine):
    """Keeps tables/chains/rules in memory and renders them like nft does."""

    def __init__(self):
        self.tables = []
        self.fail_on = None
        self.calls = []

    def _table(self, family, table):
        return find_table(self.tables, family, table)

    def table_exists(self, family, table):
        self.calls.append(('table_exists', family, table))
        return self._table(family, table) is not None

    def chain_exists(self, family, table, chain):
        self.calls.append(('chain_exists', family, table, chain))
        found = self._table(family, table)
        return found is not None and chain in found.chains

    def add_table(self, family, table):
        self.calls.append(('add_table', family, table))
        if self._table(family, table) is None:
            self.tables.append(NftTable(family=family, name=table))

    def add_chain(self, family, table, chain, spec):
        self.calls.append(('add_chain', family, table, chain))
        found = self._table(family, table)
        if found is None:
            raise CommandError(['nft', 'add', 'chain', family, table, chain], 1, 'No such file or directory')
        if chain not in found.chains:
            found.chains[chain] = NftChain(name=chain, spec=spec.strip('{} '))

    def delete_table(self, family, table):
        self.calls.append(('delete_table', family, table))
        found = self._table(family, table)
        if found is None:
            raise CommandError(['nft', 'delete', 'table', family, table], 1, 'No such file or directory')
        self.tables.remove(found)

    def apply_batch(self, lines):
        self.calls.append(('apply_batch', list(lines)))
        staged = copy.deepcopy(self.tables)
        for line in lines:
            if self.fail_on and self.fail_on in line:
                raise CommandError(['nft', '-f', '-'], 1, f'Error: could not process rule: {line}')
            words = line.split()
            if words[:2] != ['add', 'rule']:
                raise CommandError(['nft', '-f', '-'], 1, f'Error: syntax error: {line}')
            family, table, chain = words[2], words[3], words[4]
            found = find_table(staged, family, table)
            if found is None or chain not in found.chains:
                raise CommandError(['nft', '-f', '-'], 1, 'Error: No such file or directory')
            found.chains[chain].rules.append(' '.join(words[5:]))
        self.tables = staged

    def render_table(self, table):
        lines = [f"table {table.family} {table.name} {{"]
        for chain in table.chains.values():
            lines.append(f"\tchain {chain.name} {{")
            if chain.spec:
                lines.append(f"\t\t{chain.spec}")
            for rule in chain.rules:
                lines.append(f"\t\t{rule}")
            lines.append("\t}")
        lines.append("}")
        return "\n".join(lines) + "\n"

    def list_ruleset(self):
        return "".join(self.render_table(table) for table in self.tables)

    def list_table(self, family, table):
        found = self._table(family, table)
        if found is None:
            raise CommandError(['nft', 'list', 'table', family, table], 1, 'No such file or directory')
        return self.render_table(found)

    def load_ruleset(self, text):
        self.calls.append(('load_ruleset',))
        self.tables = parse_ruleset(text)

    def rule_count(self, family='inet', table='port_forward'):
        found = self._table(family, table)
        return found.rule_count() if found else 0


class FakeKernelParams(KernelParams):
    """sysctl stand-in; a successful reload applies the file's settings."""

    def __init__(self, values=None, reload_ok=True, apply_on_reload=True):
        self.values = dict(values or {})
        self.reload_ok = reload_ok
        self.apply_on_reload = apply_on_reload
        self.reloads = []

    def get(self, key):
        return self.values.get(key)

    def reload(self, path):
        self.reloads.append(path)
        if self.reload_ok and self.apply_on_reload:
            with open(path) as f:
                for line in f:
                    if '=' in line:
                        key, value = line.split('=', 1)
                        self.values[key.strip()] = value.strip()
        return self.reload_ok


class FakeServiceControl(ServiceControl):
    def __init__(self, fail=False):
        self.fail = fail
        self.calls = []

    def _call(self, action, unit):
        self.calls.append((action, unit))
        if self.fail:
            raise CommandError(['systemctl', action, unit], 1, 'Unit not found')

    def enable(self, unit):
        self._call('enable', unit)

    def restart(self, unit):
        self._call('restart', unit)


class FakeRunner:
    """CommandRunner stand-in that records commands and replays results."""

    def __init__(self, results=None):
        self.commands = []
        self.inputs = []
        self.results = results or {}

    def run(self, cmd, input_text=None, check=True):
        self.commands.append(list(cmd))
        self.inputs.append(input_text)
        returncode, stdout = self.results.get(tuple(cmd), (0, ''))
        if returncode != 0 and check:
            raise CommandError(cmd, returncode, 'failed')
        return subprocess.CompletedProcess(cmd, returncode, stdout, '')

    def succeeds(self, cmd):
        return self.run(cmd, check=False).returncode == 0


SATISFIED = {
    'net.ipv4.ip_forward': '1',
    'net.ipv6.conf.all.forwarding': '1',
    'net.ipv4.tcp_congestion_control': 'bbr',
}


@pytest.fixture
def config(tmp_path):
    cfg = Config(str(tmp_path / 'missing-config.yaml'))
    cfg.set('general.log_file', '')
    cfg.set('general.lock_file', str(tmp_path / 'nft-forward.lock'))
    cfg.set('nftables.config_file', str(tmp_path / 'nftables.conf'))
    cfg.set('kernel.sysctl_file', str(tmp_path / 'sysctl.d' / '99-forward.conf'))
    return cfg


@pytest.fixture
def engine():
    return FakeRuleEngine()


@pytest.fixture
def kernel_params():
    return FakeKernelParams(SATISFIED)


@pytest.fixture
def service():
    return FakeServiceControl()


@pytest.fixture
def manager(config, engine, kernel_params, service):
    return PortForwardManager(config, engine, kernel_params, service)


@pytest.fixture
def scripted():
    """Build a read(prompt) function answering from a list, EOF when exhausted."""

    def factory(answers):
        remaining = list(answers)
        prompts = []

        def read(prompt):
            prompts.append(prompt)
            if not remaining:
                raise EOFError
            return remaining.pop(0)

        read.prompts = prompts
        read.remaining = remaining
        return read

    return factory
