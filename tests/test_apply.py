import threading

from batchmover.core.apply import (
    AfterApply,
    ApplyEngine,
    ErrorKind,
    FileStatus,
    OperationStatus,
    apply_policy,
    find_target_collisions,
)
from batchmover.core.operation_set import OperationSet
from batchmover.infra.local_fs import LocalFileSystem


def _store_with(dest="/out", sub="done", files=("/a/x.png", "/a/y.png")):
    store = OperationSet()
    op = store.add()
    store.update(op.op_id, lambda o: o.add_files(list(files)))
    store.update(op.op_id, lambda o: o.set_destination(dest))
    store.update(op.op_id, lambda o: o.set_subfolder(sub))
    return store, op.op_id


def test_full_success_moves_into_subfolder_and_clears(fake_fs):
    store, _ = _store_with()

    report = ApplyEngine(fake_fs).apply(store.snapshot())

    assert fake_fs.calls == [
        ("mkdir", "/out/done"),
        ("mv", "/a/x.png", "/out/done/x.png"),
        ("mv", "/a/y.png", "/out/done/y.png"),
    ]
    assert report.ok
    assert len(report.succeeded()) == 2
    assert report.summary().startswith("2/2 file(s) moved")

    apply_policy(store, report, AfterApply.CLEAR_ON_FULL_SUCCESS)
    assert len(store) == 0


def test_partial_failure_keeps_state(fake_fs):
    store, op_id = _store_with()
    fake_fs.fail_moves["/a/y.png"] = "destination locked"

    report = ApplyEngine(fake_fs).apply(store.snapshot())

    assert not report.ok
    assert [f.source for f in report.succeeded()] == ["/a/x.png"]
    [failure] = report.failures()
    assert failure.source == "/a/y.png"
    assert failure.error == "destination locked"
    assert failure.error_kind == ErrorKind.MOVE_FAILED
    assert report.operations[0].status == OperationStatus.PARTIAL

    assert apply_policy(store, report, AfterApply.CLEAR_ON_FULL_SUCCESS) == []
    assert store.get(op_id).paths() == ["/a/x.png", "/a/y.png"]


def test_failed_file_does_not_block_later_files(fake_fs):
    store, _ = _store_with(files=("/a/1.png", "/a/2.png", "/a/3.png"))
    fake_fs.fail_moves["/a/1.png"] = "boom"

    report = ApplyEngine(fake_fs).apply(store.snapshot())

    assert [f.status for f in report.file_outcomes()] == [FileStatus.FAILED, FileStatus.SUCCESS, FileStatus.SUCCESS]


def test_operation_without_destination_is_skipped(fake_fs):
    store, op_id = _store_with(dest="")

    report = ApplyEngine(fake_fs).apply(store.snapshot())

    assert fake_fs.calls == []
    assert report.operations[0].status == OperationStatus.SKIPPED
    assert report.operations[0].skip_reason == "no destination"
    assert report.ok
    assert apply_policy(store, report, AfterApply.CLEAR_COMPLETED) == []
    assert store.find(op_id) is not None

    assert apply_policy(store, report, AfterApply.CLEAR_ON_FULL_SUCCESS) == [op_id]
    assert len(store) == 0


def test_full_success_clears_skipped_operations_too(fake_fs):
    store, applied_id = _store_with()
    idle = store.add()

    report = ApplyEngine(fake_fs).apply(store.snapshot())

    assert report.ok
    assert report.operations[1].status == OperationStatus.SKIPPED
    assert apply_policy(store, report, AfterApply.CLEAR_ON_FULL_SUCCESS) == [applied_id, idle.op_id]
    assert len(store) == 0


def test_clear_completed_keeps_skipped_operations(fake_fs):
    store, applied_id = _store_with()
    idle = store.add()

    report = ApplyEngine(fake_fs).apply(store.snapshot())

    assert apply_policy(store, report, AfterApply.CLEAR_COMPLETED) == [applied_id]
    assert [op.op_id for op in store] == [idle.op_id]


def test_empty_operation_is_skipped(fake_fs):
    store = OperationSet()
    op = store.add()
    store.update(op.op_id, lambda o: o.set_destination("/out"))

    report = ApplyEngine(fake_fs).apply(store.snapshot())

    assert fake_fs.calls == []
    assert report.operations[0].skip_reason == "no files"


def test_folder_failure_aborts_only_that_operation(fake_fs):
    store = OperationSet()
    first = store.add()
    second = store.add()
    store.update(first.op_id, lambda o: (o.add_files(["/a/x.png"]), o.set_destination("/locked")))
    store.update(second.op_id, lambda o: (o.add_files(["/b/z.png"]), o.set_destination("/out")))
    fake_fs.fail_folders["/locked"] = "permission denied"

    report = ApplyEngine(fake_fs).apply(store.snapshot())

    assert ("mv", "/a/x.png", "/locked/x.png") not in fake_fs.calls
    assert ("mv", "/b/z.png", "/out/z.png") in fake_fs.calls
    op1, op2 = report.operations
    assert op1.status == OperationStatus.FOLDER_FAILED
    assert op1.error_kind == ErrorKind.FOLDER_CREATE_FAILED
    assert op1.error == "permission denied"
    assert op2.status == OperationStatus.COMPLETED
    assert not report.ok


def test_renamed_target_is_used(fake_fs):
    store, op_id = _store_with(sub="")
    store.update(op_id, lambda o: o.set_target_name("/a/x.png", "cover.jpg"))

    ApplyEngine(fake_fs).apply(store.snapshot())

    assert ("mv", "/a/x.png", "/out/cover.png") in fake_fs.calls


def test_invalid_target_name_fails_that_file_only(fake_fs):
    store, op_id = _store_with(sub="")
    store.update(op_id, lambda o: o.set_target_name("/a/x.png", "../escape"))

    report = ApplyEngine(fake_fs).apply(store.snapshot())

    assert not any(c[0] == "mv" and c[1] == "/a/x.png" for c in fake_fs.calls)
    assert ("mv", "/a/y.png", "/out/y.png") in fake_fs.calls
    assert "path separator" in report.failures()[0].error


def test_empty_target_name_fails_instead_of_keeping_original(fake_fs):
    store, op_id = _store_with(sub="", files=("/a/README", "/a/y.png"))
    assert store.update(op_id, lambda o: o.set_target_name("/a/README", "")) == ""

    report = ApplyEngine(fake_fs).apply(store.snapshot())

    assert not any(c[0] == "mv" and c[1] == "/a/README" for c in fake_fs.calls)
    assert ("mv", "/a/y.png", "/out/y.png") in fake_fs.calls
    [failure] = report.failures()
    assert failure.source == "/a/README"
    assert failure.error_kind == ErrorKind.MOVE_FAILED
    assert not report.ok


def test_cancel_before_start_issues_no_calls(fake_fs):
    store, _ = _store_with()
    cancel = threading.Event()
    cancel.set()

    report = ApplyEngine(fake_fs).apply(store.snapshot(), cancel_event=cancel)

    assert fake_fs.calls == []
    assert report.cancelled
    assert not report.ok
    assert [f.status for f in report.file_outcomes()] == [FileStatus.CANCELLED, FileStatus.CANCELLED]


def test_cancel_between_files(fake_fs):
    store, _ = _store_with(files=("/a/1.png", "/a/2.png", "/a/3.png"))
    cancel = threading.Event()
    original_move = fake_fs.move_file

    def move_then_cancel(old, new):
        res = original_move(old, new)
        cancel.set()
        return res

    fake_fs.move_file = move_then_cancel

    report = ApplyEngine(fake_fs).apply(store.snapshot(), cancel_event=cancel)

    assert [f.status for f in report.file_outcomes()] == [
        FileStatus.SUCCESS,
        FileStatus.CANCELLED,
        FileStatus.CANCELLED,
    ]
    assert report.operations[0].status == OperationStatus.CANCELLED
    assert report.cancelled


def test_collisions_are_reported_as_warnings(fake_fs):
    store = OperationSet()
    a, b = store.add(), store.add()
    store.update(a.op_id, lambda o: (o.add_files(["/a/x.png"]), o.set_destination("/out")))
    store.update(b.op_id, lambda o: (o.add_files(["/b/x.png"]), o.set_destination("/out")))

    assert find_target_collisions(store.operations) == {"/out/x.png": ["/a/x.png", "/b/x.png"]}
    report = ApplyEngine(fake_fs).apply(store.snapshot())
    assert report.warnings == ["Collision: 2 files target /out/x.png"]


def test_keep_policy_never_mutates(fake_fs):
    store, _ = _store_with()
    report = ApplyEngine(fake_fs).apply(store.snapshot())
    assert report.ok
    assert apply_policy(store, report, AfterApply.KEEP) == []
    assert len(store) == 1


def test_prune_succeeded_leaves_failed_files(fake_fs):
    store, op_id = _store_with()
    fake_fs.fail_moves["/a/y.png"] = "locked"
    report = ApplyEngine(fake_fs).apply(store.snapshot())

    apply_policy(store, report, AfterApply.PRUNE_SUCCEEDED)

    op = store.get(op_id)
    assert op.paths() == ["/a/y.png"]
    assert list(op.target_names) == ["/a/y.png"]


def test_prune_succeeded_drops_fully_done_operation(fake_fs):
    store, op_id = _store_with()
    report = ApplyEngine(fake_fs).apply(store.snapshot())
    assert apply_policy(store, report, AfterApply.PRUNE_SUCCEEDED) == [op_id]
    assert len(store) == 0


def test_after_apply_parse_falls_back():
    assert AfterApply.parse("keep") == AfterApply.KEEP
    assert AfterApply.parse("clear_completed") == AfterApply.CLEAR_COMPLETED
    assert AfterApply.parse(" Prune_Succeeded ") == AfterApply.PRUNE_SUCCEEDED
    assert AfterApply.parse("whatever") == AfterApply.CLEAR_ON_FULL_SUCCESS


def test_apply_on_real_filesystem(tmp_path):
    src_dir = tmp_path / "a"
    src_dir.mkdir()
    (src_dir / "x.png").write_bytes(b"x")
    (src_dir / "y.png").write_bytes(b"y")
    out = tmp_path / "out"

    store, op_id = _store_with(
        dest=str(out),
        sub="done",
        files=(str(src_dir / "x.png"), str(src_dir / "y.png")),
    )
    store.update(op_id, lambda o: o.set_target_name(str(src_dir / "y.png"), "second.gif"))
    log: list[str] = []

    report = ApplyEngine(LocalFileSystem(), log=log.append).apply(store.snapshot())

    assert report.ok
    assert sorted(p.name for p in (out / "done").iterdir()) == ["second.png", "x.png"]
    assert not any(src_dir.iterdir())
    assert any(line.startswith("[local] moved") for line in log)


def test_missing_source_on_real_filesystem_is_reported(tmp_path):
    store, _ = _store_with(dest=str(tmp_path / "out"), sub="", files=(str(tmp_path / "ghost.png"),))

    report = ApplyEngine(LocalFileSystem()).apply(store.snapshot())

    assert not report.ok
    assert "Source file not found" in report.failures()[0].error
