import pytest

from cleanova.services.playback_session import (
    INVALID_URL_MESSAGE,
    MediaErrorCategory,
    Phase,
    PlaybackSession,
    PlaybackTransitionError,
    PriorProgress,
    VideoDescriptor,
    is_valid_media_url,
    map_media_error,
)

USER_ID = 3
MEDIA_URL = "https://storage.test/object/sign/cleanova-videos/kompor.mp4?token=abc"


def make_session(store, video_url=MEDIA_URL, prior=None, user=USER_ID):
    return PlaybackSession(
        VideoDescriptor(id="vid-1", video_url=video_url, title="Kompor"),
        prior,
        store=store,
        current_user=lambda: user,
    )


def playing_session(store, **kwargs):
    session = make_session(store, **kwargs)
    session.mount()
    session.on_loaded_data(0)
    session.on_play(0)
    return session


@pytest.mark.parametrize("url", ["", "   ", "not-a-url", "videos/kompor.mp4",
                                 "ftp://host/kompor.mp4", "https://host/with space.mp4"])
def test_invalid_urls_rejected(url):
    assert is_valid_media_url(url) is False


def test_signed_url_is_valid():
    assert is_valid_media_url(MEDIA_URL) is True


def test_invalid_url_goes_straight_to_error(store):
    session = make_session(store, video_url="not-a-url")

    session.mount()

    assert session.phase == Phase.error
    assert session.load_attempts == 0
    assert session.state.error.category == MediaErrorCategory.invalid_url.value
    assert session.state.error.message == INVALID_URL_MESSAGE
    snapshot = session.snapshot()
    assert snapshot["media_url"] is None
    assert snapshot["loading"] is False
    assert store.finds == 0


def test_mount_valid_url_starts_loading(store):
    session = make_session(store)
    session.mount()

    assert session.phase == Phase.loading
    assert session.load_attempts == 1
    assert session.state.loading is True
    assert session.snapshot()["media_url"] == MEDIA_URL


def test_mount_twice_not_allowed(store):
    session = make_session(store)
    session.mount()
    with pytest.raises(PlaybackTransitionError):
        session.mount()


def test_resume_from_persisted_offset(store):
    session = make_session(store, prior=PriorProgress(progress_seconds=45))
    session.mount()

    outcome = session.on_loaded_data(0)

    assert session.phase == Phase.ready
    assert outcome.accepted is True
    assert outcome.seek_to == 45
    assert session.percent == 38


def test_no_seek_without_prior_progress(store):
    session = make_session(store)
    session.mount()
    outcome = session.on_loaded_data(0)
    assert outcome.accepted is True
    assert outcome.seek_to is None


@pytest.mark.parametrize("code,category", [
    (1, MediaErrorCategory.unloadable),
    (2, MediaErrorCategory.unplayable),
    (3, MediaErrorCategory.undownloadable),
    (4, MediaErrorCategory.unsupported_format),
])
def test_media_error_codes(code, category):
    assert map_media_error(code).category == category.value


def test_unknown_media_error_is_generic():
    error = map_media_error(99, "decoder crashed")
    assert error.category == MediaErrorCategory.unknown.value
    assert "decoder crashed" in error.message
    assert map_media_error(None).category == MediaErrorCategory.unknown.value


def test_error_then_retry_bumps_generation(store):
    session = make_session(store)
    session.mount()
    session.on_error(2, "network", generation=0)
    assert session.phase == Phase.error
    assert session.snapshot()["media_url"] is None

    generation = session.retry()

    assert generation == 1
    assert session.phase == Phase.loading
    assert session.state.retry_count == 1
    assert session.state.error is None
    assert session.load_attempts == 2


def test_stale_generation_events_ignored(store):
    session = make_session(store)
    session.mount()
    session.on_error(4, generation=0)
    session.retry()

    stale = session.on_loaded_data(0)
    assert stale.accepted is False
    assert session.phase == Phase.loading

    # Un error tardío de la carga anterior no afecta la nueva
    assert session.on_error(1, generation=0) is False
    assert session.phase == Phase.loading

    assert session.on_loaded_data(1).accepted is True
    assert session.phase == Phase.ready


def test_retry_only_from_error(store):
    session = make_session(store)
    session.mount()
    with pytest.raises(PlaybackTransitionError):
        session.retry()


def test_retry_with_corrected_url(store):
    session = make_session(store, video_url="")
    session.mount()
    assert session.phase == Phase.error

    session.retry(video_url=MEDIA_URL)

    assert session.phase == Phase.loading
    assert session.video.video_url == MEDIA_URL
    assert session.load_attempts == 1


def test_time_update_is_monotonic(store):
    session = playing_session(store)
    session.on_time_update(20, 0)
    session.on_time_update(12, 0)
    assert session.state.elapsed_seconds == 20


def test_seek_backwards_is_persisted(store):
    session = playing_session(store)
    session.on_time_update(25, 0)

    session.on_seeked(5, 0)

    assert session.state.elapsed_seconds == 5
    assert store.writes == [(5, False)]


def test_pause_persists_position(store):
    session = playing_session(store)
    session.on_time_update(17.6, 0)

    session.on_pause(17.8, 0)

    assert session.phase == Phase.paused
    assert store.writes == [(17, False)]


def test_playback_to_end(store):
    session = playing_session(store)
    for t in (10, 30, 50, 70):
        session.on_time_update(t, 0)

    session.on_ended(0)

    assert session.phase == Phase.ended
    assert session.percent == 100
    assert session.state.completed is True
    assert store.writes[-1] == (120, True)


def test_seek_after_end_keeps_completed(store):
    session = playing_session(store)
    session.on_ended(0)

    session.on_seeked(10, 0)

    assert session.phase == Phase.paused
    assert session.state.completed is True
    assert store.writes[-1] == (10, True)
    assert session.percent == 100


def test_reported_duration_drives_percent(store):
    session = playing_session(store)
    session.handle_event("timeupdate", 0, current_time=150, duration=600)

    assert session.duration_seconds == 600
    assert session.percent == 25
    assert session.state.completed is False


def test_completed_prior_progress_displays_full(store):
    session = make_session(store, prior=PriorProgress(progress_seconds=30, is_completed=True))
    assert session.percent == 100

    session.mount()
    session.on_loaded_data(0)
    session.on_pause(30, 0)
    assert store.writes == [(30, True)]


def test_backstop_tick_only_while_playing(store):
    session = playing_session(store)
    session.on_time_update(8, 0)
    assert session.backstop_tick() is True

    session.on_pause(None, 0)
    store.inserts.clear()
    store.updates.clear()
    assert session.backstop_tick() is False
    assert store.writes == []


def test_no_user_never_writes(store):
    session = playing_session(store, user=None)
    session.on_time_update(40, 0)
    session.on_pause(40, 0)
    session.on_ended(0)
    assert store.finds == 0
    assert store.writes == []


def test_handle_event_dispatch(store):
    session = make_session(store)
    session.mount()

    assert session.handle_event("loadstart", 0).accepted is True
    assert session.handle_event("canplay", 0).accepted is True
    assert session.handle_event("play", 0).accepted is True
    assert session.phase == Phase.playing
    assert session.handle_event("error", 0, error_code=3).accepted is True
    assert session.state.error.category == MediaErrorCategory.undownloadable.value


def test_handle_event_unknown_type(store):
    session = make_session(store)
    with pytest.raises(ValueError):
        session.handle_event("volumechange", 0)
