"""Table and chain lifecycle in the rule table store."""

from nftforward.table import RuleTableStore


def test_ensure_creates_table_and_both_chains(engine):
    store = RuleTableStore(engine)

    assert store.ensure_table() is True
    assert store.ensure_chains() == ['prerouting', 'postrouting']

    table = engine.tables[0]
    assert table.chains['prerouting'].spec == 'type nat hook prerouting priority dstnat; policy accept;'
    assert table.chains['postrouting'].spec == 'type nat hook postrouting priority srcnat; policy accept;'


def test_ensure_is_idempotent(engine):
    store = RuleTableStore(engine)

    for _ in range(5):
        store.ensure()

    assert len(engine.tables) == 1
    assert list(engine.tables[0].chains) == ['prerouting', 'postrouting']
    assert [c for c in engine.calls if c[0] == 'add_table'] == [('add_table', 'inet', 'port_forward')]
    assert len([c for c in engine.calls if c[0] == 'add_chain']) == 2


def test_existence_is_probed_every_time(engine):
    store = RuleTableStore(engine)
    store.ensure()

    # table removed behind the store's back
    engine.tables.clear()
    store.ensure()

    assert store.probe()
    assert len(engine.tables[0].chains) == 2


def test_missing_chain_is_recreated(engine):
    store = RuleTableStore(engine)
    store.ensure()
    del engine.tables[0].chains['postrouting']

    assert store.ensure_chains() == ['postrouting']


def test_delete(engine):
    store = RuleTableStore(engine)

    assert store.delete() is False
    store.ensure()
    assert store.delete() is True
    assert not store.probe()


def test_rules_lists_both_chains(engine):
    store = RuleTableStore(engine)
    assert store.rules() == {'prerouting': [], 'postrouting': []}

    store.ensure()
    engine.apply_batch(['add rule inet port_forward prerouting meta nfproto ipv4 tcp dport 80 dnat ip to 10.0.0.1:80'])

    assert store.rules() == {
        'prerouting': ['meta nfproto ipv4 tcp dport 80 dnat ip to 10.0.0.1:80'],
        'postrouting': [],
    }
