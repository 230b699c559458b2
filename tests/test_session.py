import pytest
from diaryseal.lib import session
from diaryseal.lib.session import PassphraseHolder, PassphraseUnavailable

def test_holder_get_and_clear():
    h = PassphraseHolder('secret')
    assert h.is_set
    assert h.get() == b'secret'
    h.clear()
    assert not h.is_set
    with pytest.raises(PassphraseUnavailable):
        h.get()

def test_holder_empty_until_set():
    h = PassphraseHolder()
    assert not h.is_set
    with pytest.raises(PassphraseUnavailable):
        h.extend(10)
    h.set(b'raw')
    assert h.get() == b'raw'

def test_holder_expires(monkeypatch):
    now = [1000.0]
    monkeypatch.setattr(session.time, 'monotonic', lambda: now[0])
    h = PassphraseHolder('secret', ttl_seconds=60)
    now[0] += 59
    assert h.get() == b'secret'
    h.extend(30)
    now[0] += 25  # 1084, expiry moved to 1090
    assert h.get() == b'secret'
    now[0] += 10  # 1094
    with pytest.raises(PassphraseUnavailable):
        h.get()
    assert not h.is_set

def test_holder_context_manager_clears():
    with PassphraseHolder('secret') as h:
        assert h.is_set
    assert not h.is_set

def test_holder_repr_hides_secret():
    assert 'secret' not in repr(PassphraseHolder('secret'))
