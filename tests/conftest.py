"""Shared fixtures."""

import pytest

from pulseflow.core import AlertOptions, ComparableItem, Signal, detect_changes


@pytest.fixture
def signal() -> Signal:
    return Signal(id="sig-1", name="Example Blog", url="https://blog.example.com/feed")


@pytest.fixture
def change():
    previous = [ComparableItem(id="https://blog.example.com/old", title="Old <post>")]
    current = [
        ComparableItem(
            id="https://blog.example.com/new",
            title="New <b>post</b> & more",
            url="https://blog.example.com/new",
            author="Alice",
        ),
    ]
    return detect_changes(previous, current)


@pytest.fixture
def alert_options(signal, change):
    def build(destination: str, dry_run: bool = False) -> AlertOptions:
        return AlertOptions(
            destination=destination,
            signal=signal,
            change=change,
            pulse_id="pulse-1",
            dry_run=dry_run,
        )

    return build
