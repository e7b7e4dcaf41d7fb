import pytest

from client.state import TRANSITIONS, ConnectionStatus, Session, join
from shared.errors import InvalidNicknameError, InvalidTransitionError


def test_join_starts_connecting():
    session = join("Bob")
    assert session.nickname == "Bob"
    assert session.status is ConnectionStatus.CONNECTING
    assert session.last_error is None
    assert session.status_label == "Connecting..."


@pytest.mark.parametrize("nickname", ["", "   ", "\t\n"])
def test_join_rejects_blank_nickname(nickname):
    with pytest.raises(InvalidNicknameError):
        join(nickname)


def test_nickname_is_read_only():
    session = join("Bob")
    with pytest.raises(AttributeError):
        session.nickname = "Mallory"


def test_status_is_not_directly_assignable():
    session = join("Bob")
    with pytest.raises(AttributeError):
        session.status = ConnectionStatus.CONNECTED


def test_connecting_cannot_jump_to_degraded():
    session = join("Bob")
    with pytest.raises(InvalidTransitionError):
        session.set_status(ConnectionStatus.DEGRADED)
    assert session.status is ConnectionStatus.CONNECTING


def test_degrade_and_recover():
    session = join("Bob")
    session.set_status(ConnectionStatus.CONNECTED)
    session.set_status(ConnectionStatus.DEGRADED)
    assert session.is_online
    session.set_status(ConnectionStatus.CONNECTED)
    assert session.status is ConnectionStatus.CONNECTED


def test_disconnected_only_reopens_via_connecting():
    session = Session("Bob")
    session.set_status(ConnectionStatus.DISCONNECTED)
    with pytest.raises(InvalidTransitionError):
        session.set_status(ConnectionStatus.CONNECTED)
    session.set_status(ConnectionStatus.CONNECTING)
    assert session.status is ConnectionStatus.CONNECTING


def test_every_status_has_a_transition_row():
    assert set(TRANSITIONS) == set(ConnectionStatus)


def test_set_error_records_and_clears():
    session = join("Bob")
    session.set_error("boom")
    assert session.last_error == "boom"
    session.set_error(None)
    assert session.last_error is None
