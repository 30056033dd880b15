"""Tests for the YAML signal store."""

from datetime import datetime, timezone
from pathlib import Path
from tempfile import TemporaryDirectory

import pytest

from pulseflow.core import (
    AlertChannel,
    AlertStatus,
    ChangeType,
    PulseStatus,
    Signal,
    YamlSignalStore,
)

SCRAPED_AT = datetime(2025, 1, 6, 10, 0, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_signal_roundtrip() -> None:
    """Test signals persist across store instances."""
    with TemporaryDirectory() as tmpdir:
        store = YamlSignalStore(Path(tmpdir))
        await store.save_signal(Signal(id="s1", name="Blog", url="https://a.com/feed", selector="article"))

        loaded = await YamlSignalStore(Path(tmpdir)).get_signal("s1")

        assert loaded.name == "Blog"
        assert loaded.selector == "article"
        assert loaded.last_scraped_at is None
        assert await store.get_signal("missing") is None
        assert (Path(tmpdir) / "signals" / "s1.yaml").exists()


@pytest.mark.asyncio
async def test_list_active_signals() -> None:
    """Test inactive signals are excluded."""
    with TemporaryDirectory() as tmpdir:
        store = YamlSignalStore(Path(tmpdir))
        await store.save_signal(Signal(id="s1", name="On", url="https://a.com/"))
        await store.save_signal(Signal(id="s2", name="Off", url="https://b.com/", is_active=False))

        active = await store.list_active_signals()

        assert [signal.id for signal in active] == ["s1"]
        assert len(await store.list_signals()) == 2


@pytest.mark.asyncio
async def test_record_pulse_stamps_signal() -> None:
    """Test recording a pulse also updates last_scraped_at."""
    with TemporaryDirectory() as tmpdir:
        store = YamlSignalStore(Path(tmpdir))
        await store.save_signal(Signal(id="s1", name="Blog", url="https://a.com/"))

        pulse = await store.record_pulse("s1", "[]", PulseStatus.SUCCESS, "summary", SCRAPED_AT)

        signal = await store.get_signal("s1")
        assert signal.last_scraped_at == SCRAPED_AT
        pulses = await store.list_pulses("s1")
        assert [p.id for p in pulses] == [pulse.id]
        assert pulses[0].summary == "summary"


@pytest.mark.asyncio
async def test_record_pulse_for_missing_signal_leaves_nothing() -> None:
    """Test a failed stamp removes the pulse it just wrote."""
    with TemporaryDirectory() as tmpdir:
        store = YamlSignalStore(Path(tmpdir))

        with pytest.raises(LookupError):
            await store.record_pulse("ghost", "[]", PulseStatus.SUCCESS, None, SCRAPED_AT)

        assert await store.list_pulses("ghost") == []


@pytest.mark.asyncio
async def test_latest_success_pulse() -> None:
    """Test failed pulses and the excluded id are skipped."""
    with TemporaryDirectory() as tmpdir:
        store = YamlSignalStore(Path(tmpdir))
        await store.save_signal(Signal(id="s1", name="Blog", url="https://a.com/"))

        first = await store.create_pulse("s1", "[]", PulseStatus.SUCCESS)
        await store.create_pulse("s1", '{"error": "boom"}', PulseStatus.FAILED)
        latest = await store.create_pulse("s1", "[]", PulseStatus.SUCCESS)

        assert (await store.find_latest_success_pulse("s1")).id == latest.id
        assert (await store.find_latest_success_pulse("s1", exclude_pulse_id=latest.id)).id == first.id
        assert await store.find_latest_success_pulse("other") is None


@pytest.mark.asyncio
async def test_destinations_and_alerts() -> None:
    """Test destinations filter on is_active and alerts persist per pulse."""
    with TemporaryDirectory() as tmpdir:
        store = YamlSignalStore(Path(tmpdir))
        await store.save_signal(Signal(id="s1", name="Blog", url="https://a.com/"))
        email = await store.add_destination("s1", AlertChannel.EMAIL, "ops@example.com")
        await store.add_destination("s1", AlertChannel.WEBHOOK, "https://h.example/", is_active=False)

        active = await store.find_active_destinations("s1")
        assert [d.id for d in active] == [email.id]

        alert = await store.create_alert(
            pulse_id="p1",
            destination=email,
            change_type=ChangeType.NEW_ITEMS,
            change_summary="1 new item detected",
            change_details="{}",
            status=AlertStatus.FAILED,
            error_message="smtp down",
        )

        alerts = await store.list_alerts("p1")
        assert [a.id for a in alerts] == [alert.id]
        assert alerts[0].channel == AlertChannel.EMAIL
        assert alerts[0].status == AlertStatus.FAILED
        assert alerts[0].error_message == "smtp down"
        assert alerts[0].change_type == ChangeType.NEW_ITEMS


@pytest.mark.asyncio
async def test_add_destination_requires_signal() -> None:
    """Test destinations cannot be attached to unknown signals."""
    with TemporaryDirectory() as tmpdir:
        store = YamlSignalStore(Path(tmpdir))

        with pytest.raises(LookupError):
            await store.add_destination("ghost", AlertChannel.EMAIL, "ops@example.com")


@pytest.mark.asyncio
async def test_delete_signal_cascades() -> None:
    """Test deleting a signal removes its pulses, alerts and destinations."""
    with TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        store = YamlSignalStore(root)
        await store.save_signal(Signal(id="s1", name="Blog", url="https://a.com/"))
        destination = await store.add_destination("s1", AlertChannel.EMAIL, "ops@example.com")
        pulse = await store.create_pulse("s1", "[]", PulseStatus.SUCCESS)
        await store.create_alert(
            pulse_id=pulse.id,
            destination=destination,
            change_type=None,
            change_summary="",
            change_details="{}",
            status=AlertStatus.SENT,
        )

        await store.delete_signal("s1")

        assert await store.get_signal("s1") is None
        assert await store.list_pulses("s1") == []
        assert await store.list_alerts(pulse.id) == []
        assert await store.find_active_destinations("s1") == []
        assert not (root / "alerts" / pulse.id).exists()


@pytest.mark.asyncio
async def test_update_last_scraped_missing_signal() -> None:
    """Test stamping an unknown signal raises."""
    with TemporaryDirectory() as tmpdir:
        store = YamlSignalStore(Path(tmpdir))

        with pytest.raises(LookupError):
            await store.update_signal_last_scraped("ghost", SCRAPED_AT)


@pytest.mark.asyncio
async def test_latest_success_pulse_skips_dry_runs() -> None:
    """Test dry-run pulses are never used as a comparison baseline."""
    with TemporaryDirectory() as tmpdir:
        store = YamlSignalStore(Path(tmpdir))
        await store.save_signal(Signal(id="s1", name="Blog", url="https://a.com/"))

        live = await store.record_pulse("s1", "[]", PulseStatus.SUCCESS, None, SCRAPED_AT)
        dry = await store.record_pulse("s1", "[]", PulseStatus.SUCCESS, None, SCRAPED_AT, dry_run=True)

        assert (await store.find_latest_success_pulse("s1")).id == live.id
        assert [p.dry_run for p in await store.list_pulses("s1") if p.id == dry.id] == [True]
