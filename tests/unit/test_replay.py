from __future__ import annotations

from unittest.mock import Mock, call

import pytest

from tablesource.services.data_source import TableDataSource
from tablesource.services.replay import ReplayError, replay_steps


def test_replay_full_script(people, person_validator):
    source = TableDataSource(list(people), validator_service=person_validator)
    steps = [
        {"create_new": None},
        {"edit": {"id": -1, "data": {"name": "D", "age": 4}}},
        {"confirm": {"id": -1}},
        {"edit": {"id": 0, "data": {"age": 10}}},
        {"confirm": {"id": 0}},
        {"move": {"id": 3, "direction": -3}},
        {"delete": {"id": 1}},
    ]

    result = replay_steps(source, steps)

    assert result.total_steps == 7
    assert result.applied_steps == 7
    assert result.rejected_steps == 0
    assert result.pending_rows == 0
    assert result.row_count == 3
    assert [r["name"] for r in result.final_records] == ["D", "B", "C"]
    assert [row.id for row in source.rows] == [0, 1, 2]
    assert result.elapsed_seconds >= 0


def test_replay_counts_rejected_confirm(people, person_validator):
    source = TableDataSource(list(people), validator_service=person_validator)
    steps = [
        {"create_new": {}},
        {"edit": {"id": -1, "data": {"name": "D"}}},
        {"confirm": {"id": -1}},
    ]

    result = replay_steps(source, steps)

    assert result.applied_steps == 2
    assert result.rejected_steps == 1
    assert result.outcomes[2].detail == "rejected by validation"
    assert result.pending_rows == 1
    assert result.row_count == 4
    assert len(result.final_records) == 3


def test_replay_cancel_drops_pending_row(people):
    source = TableDataSource(list(people))
    result = replay_steps(source, [{"create_new": None}, {"cancel": {"id": -1}}])
    assert result.pending_rows == 0
    assert result.row_count == 3


def test_replay_edit_then_cancel_restores_data(people):
    source = TableDataSource(list(people))
    replay_steps(
        source,
        [{"edit": {"id": 1, "data": {"name": "changed"}}}, {"cancel": {"id": 1}}],
    )
    row = source.get_row(1)
    assert row.current_data == {"name": "B", "age": 2}
    assert row.editing is False


def test_replay_update_replaces_records(people):
    source = TableDataSource(list(people))
    result = replay_steps(source, [{"update": {"records": [{"name": "Z", "age": 9}]}}])
    assert result.row_count == 1
    assert result.final_records == [{"name": "Z", "age": 9}]


@pytest.mark.parametrize(
    "step,message",
    [
        ({"explode": {}}, "unknown step"),
        ({"delete": {"id": 0}, "move": {"id": 0, "direction": 1}}, "single-key mapping"),
        ("create_new", "single-key mapping"),
    ],
)
def test_replay_rejects_malformed_steps(people, step, message):
    source = TableDataSource(list(people))
    with pytest.raises(ReplayError) as e:
        replay_steps(source, [step])
    assert message in str(e.value)


def test_replay_missing_row_aborts(people):
    source = TableDataSource(list(people))
    with pytest.raises(ReplayError) as e:
        replay_steps(source, [{"create_new": None}, {"confirm": {"id": 42}}])
    assert str(e.value).startswith("step 1 (confirm): row not found")
    # Steps before the failing one stay applied
    assert source.get_row(-1) is not None


def test_replay_wraps_invalid_move(people):
    source = TableDataSource(list(people))
    with pytest.raises(ReplayError) as e:
        replay_steps(source, [{"move": {"id": 0, "direction": 5}}])
    assert "step 0 (move)" in str(e.value)


def test_replay_missing_argument(people):
    source = TableDataSource(list(people))
    with pytest.raises(ReplayError) as e:
        replay_steps(source, [{"move": {"id": 0}}])
    assert "missing argument" in str(e.value)


def test_replay_reports_progress(people, person_validator):
    source = TableDataSource(list(people), validator_service=person_validator)
    progress = Mock()

    replay_steps(source, [{"create_new": None}, {"confirm": {"id": -1}}], progress)

    assert progress.start_step.call_args_list == [call("create_new"), call("confirm")]
    assert progress.finish_step.call_args_list == [call(True), call(False)]
