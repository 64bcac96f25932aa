from roster.context import Context
from roster.hashing import HASH_SLOT_MAX
from roster.storage import SetOptions, Slot, StorageSegment
from roster.supervisor import Supervisor


def make_context(slot=Slot(0, HASH_SLOT_MAX)):
    supervisor = Supervisor(0)
    conn = supervisor.assign_new_connection(("127.0.0.1", 5000), ("127.0.0.1", 6379), 7)
    return Context(StorageSegment(slot), supervisor, conn)


def test_is_in_slot_delegates_to_storage():
    ctx = make_context(Slot(0, 100))
    assert ctx.is_in_slot(0)
    assert ctx.is_in_slot(99)
    assert not ctx.is_in_slot(100)


def test_now_is_monotonic():
    ctx = make_context()
    first = ctx.now()
    second = ctx.now()
    assert second >= first


def test_now_works_as_expiry_clock():
    ctx = make_context()
    ctx.storage.set("k", b"v", SetOptions(expired=ctx.now() + 3600))
    assert ctx.storage.get("k", ctx.now()) == b"v"
    ctx.storage.set("gone", b"v", SetOptions(expired=ctx.now() - 1))
    assert ctx.storage.get("gone", ctx.now()) is None


def test_connection_is_shared_with_supervisor():
    ctx = make_context()
    listed = ctx.supervisor.normal_connections()
    assert [c.id for c in listed] == [ctx.connection.id]
    ctx.connection.stop()
    assert ctx.supervisor.normal_connections() == []