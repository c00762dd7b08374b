import json

import pytest

from Time_Warp.config import Config
from Time_Warp.engine.baseline import BaselineTrace, FinishedTrip
from Time_Warp.engine.interface import Alert
from Time_Warp.engine.monitor import get_monitor_slot
from Time_Warp.warp import TimeWarpScreen, WarpState

from conftest import FakeClock, make_engine


def _one_event_per_tick(**scenario):
    # The engine budget runs out after the first processed event.
    return make_engine(clock=FakeClock(step=1.0), **scenario)


def test_completes_exactly_at_target():
    trips = [{"trip_id": i, "finish": 10.0 * i} for i in range(1, 20)]
    engine = _one_event_per_tick(trips=trips)
    screen = TimeWarpScreen(engine, 150.0, wall_budget=0.5, clock=FakeClock())

    while screen.tick() is WarpState.RUNNING:
        assert engine.current_time() < 150.0
    assert screen.state is WarpState.COMPLETED
    assert engine.current_time() == 150.0
    assert screen.status.finished_trips == 15


def test_target_now_completes_on_first_tick():
    engine = make_engine(start_time=300.0)
    screen = TimeWarpScreen(engine, 300.0)
    assert screen.tick() is WarpState.COMPLETED


def test_target_in_the_past_is_rejected():
    engine = make_engine(start_time=300.0)
    with pytest.raises(ValueError):
        TimeWarpScreen(engine, 200.0)


def test_first_alert_ends_session_and_releases_monitor():
    engine = make_engine(
        alerts=[
            {"time": 100, "location": "i3", "message": "stuck"},
            {"time": 100, "message": "also stuck"},
        ]
    )
    screen = TimeWarpScreen(engine, 1000.0, halt_upon_delay=60.0)
    assert get_monitor_slot().held

    assert screen.tick() is WarpState.COMPLETED_WITH_ALERT
    assert screen.alert == Alert(100.0, "i3", "stuck")
    assert engine.drain_alerts() == []
    assert not get_monitor_slot().held
    assert not engine.has_periodic_callback


def test_halts_on_the_callback_where_delay_reaches_limit():
    engine = _one_event_per_tick(congestion=[{"location": "i1", "start": 30}])
    screen = TimeWarpScreen(
        engine, 3600.0, halt_upon_delay=120.0, interval=60.0, wall_budget=0.5
    )

    while screen.tick() is WarpState.RUNNING:
        pass

    # first seen by the 60 callback, overdue at the 180 one
    assert screen.state is WarpState.HALTED
    assert engine.current_time() == 180.0
    assert screen.halt.location == "i1"
    assert screen.halt.first_seen == 60.0
    assert screen.halt.delayed_for == 120.0
    assert not get_monitor_slot().held
    assert not engine.has_periodic_callback


def test_halt_stops_at_the_tripping_callback_within_one_tick():
    engine = make_engine(congestion=[{"location": "i5", "start": 600}])
    screen = TimeWarpScreen(
        engine, 86400.0, halt_upon_delay=120.0, interval=60.0, wall_budget=10.0
    )

    assert screen.tick() is WarpState.HALTED
    assert engine.current_time() == 720.0
    assert screen.halt.first_seen == 600.0
    assert screen.halt.delayed_for == 120.0
    assert screen.halt.describe() == "i5 delayed for 2m (since 12:10:00 AM)"


def test_fractional_target_completes_exactly():
    engine = _one_event_per_tick(trips=[{"trip_id": 1, "finish": 0.3}])
    screen = TimeWarpScreen(engine, 0.9, wall_budget=0.5)

    for _ in range(10):
        if screen.tick() is not WarpState.RUNNING:
            break
    assert screen.state is WarpState.COMPLETED
    assert engine.current_time() == 0.9


def test_cancel_stops_advancing_and_frees_slot():
    trips = [{"trip_id": i, "finish": 10.0 * i} for i in range(1, 20)]
    engine = _one_event_per_tick(trips=trips)
    screen = TimeWarpScreen(engine, 1000.0, halt_upon_delay=60.0, wall_budget=0.5)
    screen.tick()
    screen.tick()
    stopped_at = engine.current_time()

    assert screen.cancel() is WarpState.CANCELLED
    assert not get_monitor_slot().held
    assert screen.tick() is WarpState.CANCELLED
    assert engine.current_time() == stopped_at
    assert screen.cancel() is WarpState.CANCELLED


def test_second_session_runs_degraded_and_completes():
    holder = TimeWarpScreen(make_engine(), 5000.0, halt_upon_delay=60.0)
    engine = make_engine(congestion=[{"location": "i9", "start": 0}])
    screen = TimeWarpScreen(engine, 3600.0, halt_upon_delay=60.0)

    assert screen.degraded
    assert screen.halt_upon_delay is None
    assert screen.monitor is None
    while screen.tick() is WarpState.RUNNING:
        pass
    assert screen.state is WarpState.COMPLETED
    assert get_monitor_slot().lease.monitor is holder.monitor
    holder.close()


def test_new_session_can_acquire_after_every_terminal_state():
    outcomes = []
    for ending in ("cancel", "complete", "halt", "alert"):
        alerts = [{"time": 500, "message": "boom"}] if ending == "alert" else []
        engine = make_engine(congestion=[{"location": "i1", "start": 0}], alerts=alerts)
        if ending == "halt":
            screen = TimeWarpScreen(engine, 3600.0, halt_upon_delay=60.0, interval=60.0)
        elif ending == "alert":
            screen = TimeWarpScreen(engine, 3600.0, halt_upon_delay=6000.0)
        else:
            screen = TimeWarpScreen(engine, 60.0, halt_upon_delay=600.0, interval=60.0)
        assert not screen.degraded
        if ending == "cancel":
            screen.cancel()
        else:
            screen.tick()
        outcomes.append(screen.state)
        assert not get_monitor_slot().held
    assert outcomes == [
        WarpState.CANCELLED,
        WarpState.COMPLETED,
        WarpState.HALTED,
        WarpState.COMPLETED_WITH_ALERT,
    ]


def test_speed_factor_uses_sim_over_wall_elapsed():
    clock = FakeClock()
    engine = make_engine()
    screen = TimeWarpScreen(engine, 600.0, clock=clock)
    assert screen.status.speed == 0
    clock.now = 2.0
    screen.tick()
    assert screen.status.speed == 300
    assert "Speed: 300x" in screen.status.lines()


def test_status_reports_baseline_delta():
    baseline = BaselineTrace(
        [FinishedTrip(time=t, trip_id=i) for i, t in enumerate([100, 200, 300])],
        label="before edits",
    )
    engine = make_engine(trips=[{"trip_id": 1, "finish": 150}])
    screen = TimeWarpScreen(engine, 250.0, baseline=baseline)
    screen.tick()

    assert screen.status.baseline_delta == "-1"
    assert screen.status.lines()[-1] == (
        'Finished trips: 1 (-1 compared to before "before edits")'
    )


def test_status_without_baseline():
    engine = make_engine(trips=[{"trip_id": 1, "finish": 150}])
    screen = TimeWarpScreen(engine, 250.0, clock=FakeClock())
    screen.tick()
    assert screen.status.baseline_delta is None
    assert screen.status.lines() == [
        "Let's do the time warp again!",
        "12:04:10 AM / 12:04:10 AM",
        "Speed: 0x",
        "Finished trips: 1",
    ]


def test_context_manager_cancels_running_session():
    engine = make_engine()
    with TimeWarpScreen(engine, 600.0, halt_upon_delay=60.0) as screen:
        assert get_monitor_slot().held
    assert screen.state is WarpState.CANCELLED
    assert not get_monitor_slot().held


def test_session_log_records_start_and_end(tmp_path, monkeypatch):
    monkeypatch.setattr(Config, "output_dir", str(tmp_path))
    engine = make_engine()
    screen = TimeWarpScreen(engine, 60.0)
    screen.tick()

    lines = (tmp_path / "warp_log.jsonl").read_text().splitlines()
    records = [json.loads(line) for line in lines]
    assert [r["label"] for r in records] == ["session_started", "session_ended"]
    assert records[0]["payload"]["target"] == 60.0
    assert records[1]["payload"]["state"] == "completed"
    assert records[0]["session_id"] == records[1]["session_id"]
