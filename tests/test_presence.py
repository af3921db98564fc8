"""Unit tests for the presence registry.

Covers first-registration-wins dedup, unregister by connection, and the
presence_list broadcast that follows every change.
"""

from teamcall.runtime.connections import ConnectionManager
from teamcall.runtime.presence import PresenceRegistry
from tests.helpers import FakeSocket, drain, of_type


def _open(connections: ConnectionManager, *ids: str):
    return [connections.open(cid, FakeSocket()) for cid in ids]


def test_register_inserts_entry_and_broadcasts(connections, presence: PresenceRegistry) -> None:
    a, b = _open(connections, "A", "B")

    assert presence.register("A", "u1", {"name": "Alice"}) is True

    entries = presence.list()
    assert [(e.user_id, e.connection_id) for e in entries] == [("u1", "A")]
    assert entries[0].profile == {"name": "Alice"}
    assert a.user_id == "u1"

    # every connection gets the full snapshot, including the registrant
    for conn in (a, b):
        [msg] = drain(conn)
        assert msg.type == "presence_list"
        assert [u.user_id for u in msg.users] == ["u1"]


def test_register_without_user_id_is_ignored(connections, presence: PresenceRegistry) -> None:
    [a] = _open(connections, "A")

    assert presence.register("A", None) is False
    assert presence.register("A", "") is False

    assert presence.list() == []
    assert drain(a) == []


def test_register_from_closed_connection_is_ignored(connections, presence: PresenceRegistry) -> None:
    _open(connections, "A")
    connections.close("A")

    assert presence.register("A", "u1") is False
    assert len(presence) == 0


def test_first_registration_wins(connections, presence: PresenceRegistry) -> None:
    a, b = _open(connections, "A", "B")
    presence.register("A", "u1", {"tab": 1})
    drain(a), drain(b)

    assert presence.register("B", "u1", {"tab": 2}) is False

    [entry] = presence.list()
    assert entry.connection_id == "A"
    assert entry.profile == {"tab": 1}
    assert b.user_id is None
    # ignored registrations do not broadcast
    assert drain(a) == [] and drain(b) == []


def test_list_keeps_insertion_order(connections, presence: PresenceRegistry) -> None:
    _open(connections, "A", "B", "C")
    presence.register("C", "u3")
    presence.register("A", "u1")
    presence.register("B", "u2")

    assert [e.user_id for e in presence.list()] == ["u3", "u1", "u2"]


def test_unregister_removes_only_that_connection(connections, presence: PresenceRegistry) -> None:
    a, b, c = _open(connections, "A", "B", "C")
    presence.register("A", "u1")
    presence.register("B", "u2")
    presence.register("C", "u3")
    connections.close("A")
    drain(b), drain(c)

    removed = presence.unregister("A")

    assert [e.user_id for e in removed] == ["u1"]
    assert [e.user_id for e in presence.list()] == ["u2", "u3"]
    for conn in (b, c):
        [msg] = of_type(drain(conn), "presence_list")
        assert [u.user_id for u in msg.users] == ["u2", "u3"]


def test_unregister_unknown_connection_still_broadcasts(connections, presence: PresenceRegistry) -> None:
    [a] = _open(connections, "A")
    presence.register("A", "u1")
    drain(a)

    assert presence.unregister("nobody") == []

    [msg] = drain(a)
    assert msg.type == "presence_list"
    assert [u.user_id for u in msg.users] == ["u1"]


def test_user_can_register_again_after_disconnect(connections, presence: PresenceRegistry) -> None:
    _open(connections, "A", "B")
    presence.register("A", "u1")
    presence.register("B", "u1")  # second tab, ignored
    connections.close("A")
    presence.unregister("A")

    assert presence.list() == []
    assert presence.register("B", "u1") is True
    assert presence.lookup("u1").connection_id == "B"


def test_no_duplicate_user_ids_over_mixed_operations(connections, presence: PresenceRegistry) -> None:
    ids = [f"c{i}" for i in range(6)]
    _open(connections, *ids)
    users = ["u1", "u2", "u1", "u3", "u2", "u1"]

    for cid, uid in zip(ids, users):
        presence.register(cid, uid)
    presence.unregister("c0")
    presence.register("c2", "u1")
    presence.unregister("c1")
    presence.register("c4", "u2")
    presence.register("c5", "u1")

    user_ids = [e.user_id for e in presence.list()]
    assert len(user_ids) == len(set(user_ids))
    assert presence.lookup("u1").connection_id == "c2"
    assert presence.lookup("u2").connection_id == "c4"


def test_profile_is_stored_as_sent(connections, presence: PresenceRegistry) -> None:
    a, b = _open(connections, "A", "B")

    presence.register("A", "u1", "Alice")
    presence.register("B", "u2")

    assert presence.lookup("u1").profile == "Alice"
    assert presence.lookup("u2").profile == {}
    [*_, last] = drain(a)
    assert [u.profile for u in last.users] == ["Alice", {}]
