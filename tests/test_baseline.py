import json

import pytest

from Time_Warp.engine.baseline import (
    BaselineComparator,
    BaselineTrace,
    FinishedTrip,
    compare_count,
    finished_by,
    load_baseline,
)


def _trace(times, label="before"):
    return BaselineTrace(
        [FinishedTrip(time=t, trip_id=i) for i, t in enumerate(times)], label=label
    )


def test_comparator_reports_live_behind_baseline():
    trace = _trace([100, 200, 300])
    assert finished_by(trace, 250) == 2
    assert BaselineComparator(trace).delta(250, 1) == "-1"


def test_finished_by_counts_inclusive():
    assert finished_by([100.0, 200.0, 300.0], 200.0) == 2
    assert finished_by([100.0, 200.0, 300.0], 99.0) == 0


@pytest.mark.parametrize(
    "after, before, expected",
    [(5, 5, "+0"), (8, 5, "+3"), (1, 1001, "-1,000"), (12345, 0, "+12,345")],
)
def test_compare_count(after, before, expected):
    assert compare_count(after, before) == expected


def test_comparator_scans_forward_and_restarts_on_rewind():
    trace = _trace([10, 20, 30, 40])
    comparator = BaselineComparator(trace)
    assert comparator.finished_before(15) == 1
    assert comparator.finished_before(35) == 3
    assert comparator.finished_before(35) == 3
    assert comparator.finished_before(5) == 0
    assert comparator.finished_before(40) == 4
    assert trace.times == (10.0, 20.0, 30.0, 40.0)


def test_missing_or_empty_trace_skips_comparison():
    assert BaselineComparator(None).delta(100, 3) is None
    empty = BaselineComparator(_trace([]))
    assert not empty.enabled
    assert empty.delta(100, 3) is None


def test_unordered_trace_is_rejected():
    with pytest.raises(ValueError):
        _trace([200, 100])


def test_finished_series_merges_equal_times():
    assert _trace([10, 10, 20]).finished_series() == [(10.0, 2), (20.0, 3)]


def test_load_baseline_formats(tmp_path):
    obj = tmp_path / "run.json"
    obj.write_text(
        json.dumps(
            {
                "label": "no edits",
                "finished_trips": [
                    {"time": 10, "trip_id": 1, "metadata": {"mode": "bike"}},
                    {"time": 20, "trip_id": 2},
                ],
            }
        )
    )
    trace = load_baseline(obj)
    assert trace.label == "no edits"
    assert trace.trips[0].metadata == {"mode": "bike"}

    plain = tmp_path / "weekday.json"
    plain.write_text(json.dumps([{"time": 5, "trip_id": 1}]))
    assert load_baseline(plain).label == "weekday"
    assert load_baseline(plain, label="custom").label == "custom"

    lines = tmp_path / "trace.jsonl"
    lines.write_text('{"time": 1, "trip_id": 1}\n\n{"time": 2, "trip_id": 2}\n')
    assert load_baseline(lines).times == (1.0, 2.0)

    with pytest.raises(FileNotFoundError):
        load_baseline(tmp_path / "nope.json")


def test_rewind_reseats_cursor_at_bisection_point():
    comparator = BaselineComparator(_trace([10, 20, 30, 40]))
    assert comparator.finished_before(40) == 4
    assert comparator.finished_before(25) == finished_by(comparator.trace, 25) == 2
    assert comparator.finished_before(30) == 3
