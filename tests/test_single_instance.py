"""Tests for the single-instance guard.

Verifies that:
- The first manager takes the lock, a second one with the same key does not
- A refused launch notifies the running instance
- Releasing the lock lets the next launch in
"""

import uuid

import pytest
from conftest import wait_until

from hotcorner.single_instance import SingleInstanceManager


@pytest.fixture
def key() -> str:
    return f"hotcorner-test-{uuid.uuid4().hex[:12]}"


class TestSingleInstance:
    """Test lock ownership and second-launch notification."""

    def test_second_launch_refused(self, qapp, tmp_path, key, logger) -> None:
        first = SingleInstanceManager(key, tmp_path, logger=logger)
        second = SingleInstanceManager(key, tmp_path, logger=logger)
        try:
            assert first.acquire()
            assert first.is_primary
            assert not second.acquire()
            assert not second.is_primary
        finally:
            first.release()

    def test_running_instance_notified(self, qapp, tmp_path, key, logger) -> None:
        first = SingleInstanceManager(key, tmp_path, logger=logger)
        activations: list[bool] = []
        first.activated.connect(lambda: activations.append(True))
        try:
            assert first.acquire()
            SingleInstanceManager(key, tmp_path, logger=logger).acquire()
            assert wait_until(lambda: bool(activations))
        finally:
            first.release()

    def test_release_allows_next_launch(self, qapp, tmp_path, key, logger) -> None:
        first = SingleInstanceManager(key, tmp_path, logger=logger)
        assert first.acquire()
        first.release()
        assert not first.is_primary

        second = SingleInstanceManager(key, tmp_path, logger=logger)
        try:
            assert second.acquire()
        finally:
            second.release()
