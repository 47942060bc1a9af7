import pytest

from batchmover.core.operation_set import OperationSet
from batchmover.core.operations import NotFound


def test_add_appends_in_creation_order_with_unique_ids():
    store = OperationSet()
    a = store.add()
    b = store.add()
    assert [op.op_id for op in store] == [a.op_id, b.op_id]
    assert a.op_id != b.op_id
    assert a.expanded is True
    assert store.display_number(b.op_id) == 2


def test_remove_unknown_id_is_noop():
    store = OperationSet()
    store.add()
    store.remove("nope")
    assert len(store) == 1


def test_display_number_shifts_after_removal():
    store = OperationSet()
    a, b, c = store.add(), store.add(), store.add()
    store.remove(a.op_id)
    assert store.display_number(b.op_id) == 1
    assert store.display_number(c.op_id) == 2


def test_update_touches_exactly_one_operation():
    store = OperationSet()
    a, b = store.add(), store.add()
    store.update(a.op_id, lambda op: op.set_destination("/out"))
    assert store.get(a.op_id).destination == "/out"
    assert store.get(b.op_id).destination == ""


def test_update_unknown_id_raises_not_found():
    store = OperationSet()
    with pytest.raises(NotFound):
        store.update("missing", lambda op: op.set_destination("/x"))


def test_failed_update_commits_nothing():
    store = OperationSet()
    a = store.add()
    store.update(a.op_id, lambda op: op.add_files(["/a/x.png"]))

    def half_done(op):
        op.set_destination("/out")
        op.set_target_name("/a/missing.png", "boom")

    with pytest.raises(NotFound):
        store.update(a.op_id, half_done)
    assert store.get(a.op_id).destination == ""


def test_removing_last_file_drops_operation():
    store = OperationSet()
    a, b = store.add(), store.add()
    store.update(a.op_id, lambda op: op.add_files(["/a/x.png", "/a/y.png"]))

    store.remove_file(a.op_id, "/a/x.png")
    assert a.op_id in [op.op_id for op in store]

    store.remove_file(a.op_id, "/a/y.png")
    assert store.find(a.op_id) is None
    # empty operation that never had files stays
    assert store.find(b.op_id) is not None


def test_snapshot_is_independent_copy():
    store = OperationSet()
    a = store.add()
    store.update(a.op_id, lambda op: op.add_files(["/a/x.png"]))
    snap = store.snapshot()
    store.update(a.op_id, lambda op: op.set_target_name("/a/x.png", "changed"))
    assert snap[0].target_names["/a/x.png"] == "x.png"
