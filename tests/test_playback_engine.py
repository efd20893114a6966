"""
Unit Tests for PlaybackEngine

Tests for:
- Queue progression driven by device idle notifications
- Jump / remove / shuffle / stop, including stop during an in-flight advance
- Bounded retry and skip when an audio resource cannot be created
- Events published for started, failed and exhausted playback
"""

import asyncio
import random

import pytest
from fakes import EventRecorder, FakeDevice, make_items, make_song, settle

from guild_audio.application.services.playback_engine import PlaybackEngine
from guild_audio.domain.music.value_objects import DeviceState
from guild_audio.domain.shared.events import QueueExhausted, TrackFailed, TrackStarted
from guild_audio.domain.shared.exceptions import InvalidQueuePositionError


@pytest.fixture
def device():
    return FakeDevice()


@pytest.fixture
def recorder(event_bus):
    return EventRecorder(event_bus, TrackStarted, TrackFailed, QueueExhausted)


@pytest.fixture
def engine(device, router, event_bus):
    return PlaybackEngine(
        guild_id=1,
        device=device,
        router=router,
        event_bus=event_bus,
        resource_attempts=2,
        rng=random.Random(0),
    )


def queued_ids(engine: PlaybackEngine) -> list[str]:
    return [item.song.id for item in engine.queue]


class TestSequentialPlayback:
    """The queue drains one song per idle notification."""

    async def test_add_starts_first_and_queues_rest(self, engine, device):
        length = await engine.add_songs(make_items(make_song("A"), make_song("B")))

        assert length == 2
        assert engine.playing.song.id == "A"
        assert queued_ids(engine) == ["B"]
        assert device.played == ["resource:A"]
        assert device.state == DeviceState.PLAYING

    async def test_idle_advances_then_stops(self, engine, device, recorder):
        await engine.add_songs(make_items(make_song("A"), make_song("B")))

        await device.finish()
        assert engine.playing.song.id == "B"
        assert queued_ids(engine) == []

        await device.finish()
        assert engine.playing is None
        assert not engine.is_playing
        assert device.state == DeviceState.IDLE

        assert [e.song_id for e in recorder.of_type(TrackStarted)] == ["A", "B"]
        exhausted = recorder.of_type(QueueExhausted)
        assert len(exhausted) == 1
        assert exhausted[0].last_song_id == "B"

    async def test_add_while_playing_only_appends(self, engine, device):
        await engine.add_songs(make_items(make_song("A")))
        await engine.add_songs(make_items(make_song("B"), make_song("C")))

        assert engine.playing.song.id == "A"
        assert queued_ids(engine) == ["B", "C"]
        assert device.played == ["resource:A"]

    async def test_idle_from_idle_is_ignored(self, engine, device, youtube_resolver):
        await engine._on_device_state_change(DeviceState.IDLE, DeviceState.IDLE)
        assert youtube_resolver.calls == []

    async def test_idle_ignored_while_advance_in_flight(self, engine, device):
        await engine.add_songs(make_items(make_song("A"), make_song("B")))

        async with engine._lock:
            await engine._on_device_state_change(DeviceState.PLAYING, DeviceState.IDLE)

        assert engine.playing.song.id == "A"
        assert queued_ids(engine) == ["B"]


class TestQueueOperations:
    """Jump, remove, shuffle and stop."""

    async def test_jump_plays_selected_and_keeps_rest(self, engine, device):
        await engine.add_songs(make_items(make_song("X")))
        await engine.add_songs(make_items(make_song("A"), make_song("B"), make_song("C")))

        item = await engine.jump(3)

        assert item.song.id == "C"
        assert engine.playing.song.id == "C"
        assert queued_ids(engine) == ["A", "B"]
        assert device.played[-1] == "resource:C"

    async def test_jump_out_of_range(self, engine):
        await engine.add_songs(make_items(make_song("X"), make_song("A")))
        with pytest.raises(InvalidQueuePositionError):
            await engine.jump(5)
        assert engine.playing.song.id == "X"

    async def test_remove(self, engine):
        await engine.add_songs(make_items(make_song("X"), make_song("A"), make_song("B")))
        removed = engine.remove(1)
        assert removed.song.id == "A"
        assert queued_ids(engine) == ["B"]

    async def test_shuffle_keeps_members(self, engine):
        songs = [make_song(s) for s in "XABCDE"]
        await engine.add_songs(make_items(*songs))
        engine.shuffle()
        assert engine.playing.song.id == "X"
        assert sorted(queued_ids(engine)) == ["A", "B", "C", "D", "E"]

    async def test_stop_clears_and_does_not_advance(self, engine, device, recorder):
        await engine.add_songs(make_items(make_song("A"), make_song("B")))

        await engine.stop()

        assert engine.playing is None
        assert engine.queue == ()
        assert device.state == DeviceState.IDLE
        assert device.played == ["resource:A"]
        assert recorder.of_type(QueueExhausted) == []

    async def test_pause_and_resume(self, engine, device):
        await engine.add_songs(make_items(make_song("A")))

        assert await engine.pause() is True
        assert device.state == DeviceState.PAUSED
        assert await engine.pause() is False
        assert await engine.resume() is True
        assert device.state == DeviceState.PLAYING


class TestResourceFailures:
    """Songs whose audio resource cannot be created are skipped."""

    async def test_broken_song_is_skipped_after_two_attempts(
        self, engine, device, youtube_resolver, recorder
    ):
        youtube_resolver.broken.add("A")

        await engine.add_songs(make_items(make_song("A"), make_song("B")))

        attempts = [c for c in youtube_resolver.calls if c == ("create_audio_resource", "A")]
        assert len(attempts) == 2
        assert engine.playing.song.id == "B"
        assert device.played == ["resource:B"]

        failed = recorder.of_type(TrackFailed)
        assert len(failed) == 1
        assert failed[0].song_id == "A"
        assert failed[0].attempts == 2

    async def test_all_broken_queue_ends_idle(self, engine, device, youtube_resolver):
        youtube_resolver.broken.update({"A", "B"})

        await engine.add_songs(make_items(make_song("A"), make_song("B")))

        assert engine.playing is None
        assert engine.queue == ()
        assert device.state == DeviceState.IDLE
        assert device.played == []

    async def test_device_play_error_counts_as_attempt(self, engine, device, recorder):
        calls = 0
        original_play = device.play

        async def flaky_play(resource):
            nonlocal calls
            calls += 1
            if calls == 1:
                raise RuntimeError("Not connected to voice.")
            await original_play(resource)

        device.play = flaky_play

        await engine.add_songs(make_items(make_song("A")))

        assert calls == 2
        assert engine.playing.song.id == "A"
        assert recorder.of_type(TrackFailed) == []


class TestEventDelivery:
    """Handlers may call back into the engine without deadlocking."""

    async def test_handler_can_enqueue_on_exhaustion(self, engine, event_bus, device):
        async def refill(event: QueueExhausted) -> None:
            await engine.add_songs(make_items(make_song("R")))

        event_bus.subscribe(QueueExhausted, refill)

        await engine.add_songs(make_items(make_song("A")))
        await device.finish()

        assert engine.playing.song.id == "R"


class TestStopDuringAdvance:
    """stop() abandons an advance that is waiting on a resource or the device."""

    async def test_stop_while_resource_pending_plays_nothing(
        self, engine, device, youtube_resolver, recorder
    ):
        youtube_resolver.resource_gate = asyncio.Event()
        task = asyncio.create_task(
            engine.add_songs(make_items(make_song("A"), make_song("B"), make_song("C")))
        )
        await settle()

        await engine.stop()
        device.closed = True
        youtube_resolver.resource_gate.set()
        await task

        resource_calls = [c for c in youtube_resolver.calls if c[0] == "create_audio_resource"]
        assert resource_calls == [("create_audio_resource", "A")]
        assert device.played == []
        assert engine.playing is None
        assert engine.queue == ()
        assert recorder.events == []

    async def test_stop_while_play_pending_leaves_device_idle(self, engine, device, recorder):
        original_play = device.play

        async def play_racing_stop(resource):
            await engine.stop()
            await original_play(resource)

        device.play = play_racing_stop

        await engine.add_songs(make_items(make_song("A"), make_song("B")))

        assert device.played == ["resource:A"]
        assert device.state == DeviceState.IDLE
        assert engine.playing is None
        assert engine.queue == ()
        assert recorder.of_type(TrackStarted) == []

    async def test_songs_added_after_stop_play(self, engine, device, youtube_resolver):
        youtube_resolver.resource_gate = asyncio.Event()
        task = asyncio.create_task(engine.add_songs(make_items(make_song("A"), make_song("B"))))
        await settle()

        await engine.stop()
        youtube_resolver.resource_gate.set()
        await task

        await engine.add_songs(make_items(make_song("C")))

        assert device.played == ["resource:C"]
        assert engine.playing.song.id == "C"
