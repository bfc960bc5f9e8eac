import math

import pytest

from cleanova.services.progress_sync import (
    PlaybackState,
    ProgressSynchronizer,
    display_percent,
    effective_duration,
    progress_percent,
)

USER_ID = 7
VIDEO_ID = "vid-1"


def make_sync(store, state=None, user=USER_ID):
    state = state or PlaybackState()
    return ProgressSynchronizer(store, lambda: user, VIDEO_ID, state), state


@pytest.mark.parametrize("elapsed,expected", [
    (0, 0),
    (3, 3),        # 2.5 se redondea hacia arriba
    (45, 38),      # 37.5 -> 38
    (60, 50),
    (114, 95),
    (120, 100),
    (300, 100),
])
def test_progress_percent_nominal_duration(elapsed, expected):
    assert progress_percent(elapsed) == expected


def test_progress_percent_uses_reported_duration():
    assert progress_percent(150, 600) == 25
    assert progress_percent(150, None) == 100


@pytest.mark.parametrize("value", [-1, float("nan"), float("inf"), None, "45"])
def test_progress_percent_invalid_elapsed_is_zero(value):
    assert progress_percent(value) == 0


def test_effective_duration_falls_back_to_nominal():
    assert effective_duration(None) == 120
    assert effective_duration(0) == 120
    assert effective_duration(float("nan")) == 120
    assert effective_duration(95.5) == 95.5


def test_completed_always_displays_full_percent():
    assert display_percent(10, True) == 100
    assert display_percent(10, False) == 8


def test_first_write_inserts_once(store):
    sync, state = make_sync(store)

    assert sync.persist(31.7, False) is True

    assert len(store.inserts) == 1
    assert store.updates == []
    record = store.inserts[0]
    assert (record.user_id, record.video_id) == (USER_ID, VIDEO_ID)
    assert record.progress_seconds == 31
    assert record.is_completed is False
    assert state.last_persisted_seconds == 31.7


def test_existing_record_is_updated_once(store):
    store.records[(USER_ID, VIDEO_ID)] = {"progress_seconds": 10, "is_completed": False}
    sync, _ = make_sync(store)

    sync.persist(40, False)

    assert store.inserts == []
    assert store.updates == [(USER_ID, VIDEO_ID, {"progress_seconds": 40, "is_completed": False})]


def test_no_user_skips_all_store_calls(store):
    sync, state = make_sync(store, user=None)

    assert sync.persist(50, False) is False
    assert sync.on_pause(50) is False

    assert store.finds == 0
    assert store.inserts == [] and store.updates == []
    assert state.last_persisted_seconds == 0


@pytest.mark.parametrize("elapsed", [-5, float("nan"), None])
def test_invalid_elapsed_skips_write(store, elapsed):
    sync, _ = make_sync(store)
    assert sync.persist(elapsed, False) is False
    assert store.finds == 0


def test_failed_write_does_not_advance_marker(store):
    sync, state = make_sync(store)
    store.fail_write = True

    assert sync.persist(35, False) is False
    assert state.last_persisted_seconds == 0

    store.fail_write = False
    # El umbral periódico sigue vencido y se reintenta en el siguiente avance
    assert sync.on_time_advance(36) == ["periodic"]
    assert store.writes == [(36, False)]


def test_failed_lookup_does_not_write(store):
    sync, state = make_sync(store)
    store.fail_find = True

    assert sync.persist(35, False) is False
    assert store.inserts == []
    assert state.last_persisted_seconds == 0


def test_periodic_threshold(store):
    sync, _ = make_sync(store)

    assert sync.on_time_advance(29.9) == []
    assert sync.on_time_advance(30) == ["periodic"]
    assert sync.on_time_advance(45) == []
    assert sync.on_time_advance(60) == ["periodic"]

    assert store.writes == [(30, False), (60, False)]


def test_completion_written_exactly_once(store):
    state = PlaybackState(elapsed_seconds=100, last_persisted_seconds=100)
    sync, _ = make_sync(store, state)

    for t in (105, 110):
        assert sync.on_time_advance(t) == []
    assert sync.on_time_advance(114) == ["completion"]
    for t in (115, 116, 118):
        assert sync.on_time_advance(t) == []

    assert store.writes == [(114, True)]
    assert state.completed is True


def test_completion_write_satisfies_periodic_threshold(store):
    sync, state = make_sync(store)

    assert sync.on_time_advance(115) == ["completion"]
    assert store.writes == [(115, True)]
    assert state.completed is True
    assert state.last_persisted_seconds == 115


def test_completion_uses_real_duration(store):
    state = PlaybackState(duration_seconds=600, last_persisted_seconds=100)
    sync, _ = make_sync(store, state)

    sync.on_time_advance(114)

    assert state.completed is False
    assert store.writes == []


def test_completed_flag_never_reset(store):
    state = PlaybackState(completed=True)
    sync, _ = make_sync(store, state)

    sync.on_pause(12)
    sync.on_seek(3)

    assert store.writes == [(12, True), (3, True)]


def test_end_persists_duration_as_completed(store):
    sync, state = make_sync(store, PlaybackState(elapsed_seconds=80))

    assert sync.on_end(120) is True

    assert store.writes == [(120, True)]
    assert state.completed is True


def test_backstop_only_while_playing(store):
    sync, _ = make_sync(store)

    assert sync.on_backstop(12, playing=False) is False
    assert sync.on_backstop(12, playing=True) is True
    assert store.writes == [(12, False)]


def test_progress_seconds_is_floored(store):
    sync, _ = make_sync(store)
    sync.persist(59.999, False)
    assert store.inserts[0].progress_seconds == math.floor(59.999)


def test_backstop_skips_unchanged_position(store):
    sync, _ = make_sync(store)

    assert sync.on_backstop(40, playing=True) is True
    for _ in range(5):
        assert sync.on_backstop(40, playing=True) is False
    assert sync.on_backstop(41, playing=True) is True

    assert store.writes == [(40, False), (41, False)]
