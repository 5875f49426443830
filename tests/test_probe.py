"""Tests for the cached foreground probe."""

from conftest import FakeBackend, FakeClock

from hotcorner.core.logging import Logger
from hotcorner.core.model import ForegroundInfo
from hotcorner.core.probe import ForegroundProbe

GAME = ForegroundInfo(exe="C:\\Games\\doom.exe", is_real_fullscreen=True)


def make_probe(backend: FakeBackend, clock: FakeClock) -> ForegroundProbe:
    return ForegroundProbe(backend, clock, logger=Logger())


class TestFetch:
    """Test caching and coalescing."""

    def test_stamps_capture_time(self, qapp, backend, clock) -> None:
        probe = make_probe(backend, clock)
        received: list[ForegroundInfo] = []
        probe.fetch(received.append)
        clock.advance(30)
        backend.answer(GAME)

        assert received[0].exe == GAME.exe
        assert received[0].captured_at == clock.now
        assert probe.latest.captured_at == clock.now
        assert not probe.in_flight

    def test_concurrent_fetches_share_one_query(self, qapp, backend, clock) -> None:
        probe = make_probe(backend, clock)
        received: list[str] = []
        probe.fetch(lambda info: received.append("a"))
        probe.fetch(lambda info: received.append("b"))
        probe.fetch()

        assert backend.probes == 1
        assert probe.in_flight
        backend.answer(GAME)
        assert received == ["a", "b"]

    def test_fresh_snapshot_served_from_cache(self, qapp, backend, clock) -> None:
        backend.auto_info = GAME
        probe = make_probe(backend, clock)
        probe.fetch()
        clock.advance(200)

        received: list[ForegroundInfo] = []
        probe.fetch(received.append)
        assert backend.probes == 1
        assert received == [probe.latest]

    def test_stale_snapshot_refetched(self, qapp, backend, clock) -> None:
        backend.auto_info = GAME
        probe = make_probe(backend, clock)
        probe.fetch()
        clock.advance(350)
        assert not probe.is_fresh()
        probe.fetch()
        assert backend.probes == 2

    def test_force_bypasses_cache(self, qapp, backend, clock) -> None:
        backend.auto_info = GAME
        probe = make_probe(backend, clock)
        probe.fetch()
        probe.fetch(force=True)
        assert backend.probes == 2

    def test_signal_emitted(self, qapp, backend, clock) -> None:
        backend.auto_info = GAME
        probe = make_probe(backend, clock)
        seen: list[ForegroundInfo] = []
        probe.info_received.connect(seen.append)
        probe.fetch()
        assert len(seen) == 1 and seen[0].is_real_fullscreen

    def test_empty_before_first_answer(self, qapp, backend, clock) -> None:
        probe = make_probe(backend, clock)
        assert probe.latest.is_empty
        assert not probe.is_fresh()


class TestRefresh:
    """Test the throttled refresh and the monitor."""

    def test_refresh_throttled(self, qapp, backend, clock) -> None:
        backend.auto_info = GAME
        probe = make_probe(backend, clock)
        probe.refresh_if_stale()
        clock.advance(100)
        probe.refresh_if_stale()
        assert backend.probes == 1
        clock.advance(300)
        probe.refresh_if_stale()
        assert backend.probes == 2

    def test_monitor_queries_immediately(self, qapp, backend, clock) -> None:
        probe = make_probe(backend, clock)
        probe.start_monitor()
        try:
            assert probe.monitoring
            assert backend.probes == 1
        finally:
            probe.stop_monitor()
        assert not probe.monitoring

    def test_invalidate(self, qapp, backend, clock) -> None:
        backend.auto_info = GAME
        probe = make_probe(backend, clock)
        probe.fetch()
        probe.invalidate()
        assert probe.latest.is_empty
        probe.refresh_if_stale()
        assert backend.probes == 2
