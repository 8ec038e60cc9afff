from boingbox.presence import PresenceRegistry


def test_register_and_lookup():
    registry = PresenceRegistry()
    registry.register('u1', 'c1')
    assert registry.lookup('u1') == 'c1'
    assert registry.lookup('u2') is None
    assert registry.lookup(None) is None
    assert 'u1' in registry
    assert len(registry) == 1


def test_numeric_and_string_ids_are_the_same_user():
    registry = PresenceRegistry()
    registry.register(7, 'c1')
    assert registry.lookup('7') == 'c1'
    assert registry.lookup(7) == 'c1'


def test_last_registration_wins():
    registry = PresenceRegistry()
    registry.register('u1', 'c1')
    registry.register('u1', 'c2')
    assert registry.lookup('u1') == 'c2'
    assert len(registry) == 1


def test_unregister_returns_user():
    registry = PresenceRegistry()
    registry.register('u1', 'c1')
    registry.register('u2', 'c2')
    assert registry.unregister('c1') == 'u1'
    assert registry.lookup('u1') is None
    assert registry.lookup('u2') == 'c2'


def test_unregister_replaced_connection_keeps_newer_entry():
    registry = PresenceRegistry()
    registry.register('u1', 'c1')
    registry.register('u1', 'c2')
    assert registry.unregister('c1') is None
    assert registry.lookup('u1') == 'c2'


def test_unregister_unknown_connection():
    registry = PresenceRegistry()
    assert registry.unregister('nope') is None
    assert registry.online_users() == {}
