"""Interactive menu driven headlessly with scripted answers."""

import io
import logging

import pytest

from nftforward.dispatcher import CommandDispatcher
from nftforward.models import AddressFamily, ForwardingIntent


@pytest.fixture
def out():
    return io.StringIO()


@pytest.fixture
def run_menu(manager, scripted, out, caplog):
    caplog.set_level(logging.INFO)

    def runner(answers):
        read = scripted(answers)
        code = CommandDispatcher(manager, read=read, out=out, color=False).run()
        return code, read

    return runner


def _errors(caplog):
    return [r.message for r in caplog.records if r.levelno >= logging.ERROR]


def test_add_ipv4_then_list(run_menu, engine, out, config):
    code, read = run_menu(['1', '8080', '10.0.0.5', '', '4', '0'])

    assert code == 0
    assert read.remaining == []
    assert engine.rule_count() == 4
    text = out.getvalue()
    assert text.count('dnat ip to 10.0.0.5:8080') >= 2
    assert 'meta nfproto ipv4 ip daddr 10.0.0.5 tcp dport 8080 masquerade' in text
    assert 'meta nfproto ipv4 ip daddr 10.0.0.5 udp dport 8080 masquerade' in text
    assert 'Managed forwarding rules: 4' in text
    assert read.prompts[3] == 'Remote port [Enter for 8080]: '


def test_add_persists_the_ruleset(run_menu, engine, config, service):
    run_menu(['1', '8080', '10.0.0.5', '', '0'])

    with open(config.get('nftables.config_file')) as f:
        assert 'dnat ip to 10.0.0.5:8080' in f.read()
    assert service.calls == [('enable', 'nftables'), ('restart', 'nftables')]


def test_add_ipv6(run_menu, engine, out):
    run_menu(['2', '443', '2001:db8::1', '8443', '0'])

    assert engine.rule_count() == 4
    text = out.getvalue()
    assert 'meta nfproto ipv6 tcp dport 443 dnat ip6 to [2001:db8::1]:8443' in text
    assert 'meta nfproto ipv6 ip6 daddr 2001:db8::1 udp dport 8443 masquerade' in text


def test_invalid_port_is_reprompted_once(run_menu, engine, caplog):
    code, read = run_menu(['1', '99999', '80', '10.0.0.5', '', '0'])

    assert code == 0
    assert read.prompts[1:3] == ['Local listening port [1-65535]: '] * 2
    assert _errors(caplog) == ['Invalid port number, please try again']
    assert 'meta nfproto ipv4 tcp dport 80 dnat ip to 10.0.0.5:80' in engine.tables[0].chains['prerouting'].rules


def test_invalid_address_and_remote_port_reprompt(run_menu, engine, caplog):
    run_menu(['1', '80', 'example.com', '10.0.0.5', 'abc', '8080', '0'])

    assert _errors(caplog) == ['Invalid IPv4 address, please try again', 'Invalid port number, please try again']
    assert engine.tables[0].chains['prerouting'].rules[0].endswith('10.0.0.5:8080')


def test_clear_declined_keeps_rules(run_menu, manager, engine, service):
    manager.add_forward(ForwardingIntent(AddressFamily.IPV4, 8080, '10.0.0.5'))
    service.calls.clear()

    run_menu(['3', 'n', '0'])

    assert engine.rule_count() == 4
    assert service.calls == []


def test_clear_confirmed_deletes_table(run_menu, manager, engine):
    manager.add_forward(ForwardingIntent(AddressFamily.IPV4, 8080, '10.0.0.5'))

    run_menu(['3', 'Y', '0'])

    assert not engine.table_exists('inet', 'port_forward')


def test_clear_on_empty_table(run_menu, config, service, caplog):
    code, _ = run_menu(['3', 'y', '0'])

    assert code == 0
    assert _errors(caplog) == []
    assert any('nothing to clear' in r.message for r in caplog.records)
    assert service.calls == []


def test_invalid_menu_choice(run_menu, caplog):
    code, read = run_menu(['7', '0'])

    assert code == 0
    assert _errors(caplog) == ['Invalid option, please try again']
    assert len(read.prompts) == 2


def test_end_of_input_exits_cleanly(run_menu):
    code, _ = run_menu([])

    assert code == 0


def test_operational_error_returns_to_menu(run_menu, engine, caplog):
    engine.fail_on = 'masquerade'

    code, read = run_menu(['1', '8080', '10.0.0.5', '', '4', '0'])

    assert code == 0
    assert read.remaining == []
    assert engine.rule_count() == 0
    assert any('Rule installation failed' in message for message in _errors(caplog))


def test_menu_lists_all_options(run_menu, out):
    run_menu(['0'])

    text = out.getvalue()
    for line in ('1. Add IPv4 port forward', '2. Add IPv6 port forward', '3. Clear all forwarding rules',
                 '4. Show current rules', '0. Exit'):
        assert line in text
