"""YAML artifact store for signals, pulses, destinations and alerts."""

import asyncio
import logging
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import yaml

from pulseflow.core.entities import (
    Alert,
    AlertChannel,
    AlertDestination,
    AlertStatus,
    ChangeType,
    Pulse,
    PulseStatus,
    Signal,
    utcnow,
)
from pulseflow.core.interfaces import SignalStore

logger = logging.getLogger(__name__)


def new_id() -> str:
    return uuid.uuid4().hex


class YamlSignalStore(SignalStore):
    """Keep every entity as an individual YAML artifact.

    Layout::

        <storage_dir>/signals/<signal_id>.yaml
        <storage_dir>/destinations/<signal_id>/<destination_id>.yaml
        <storage_dir>/pulses/<signal_id>/<pulse_id>.yaml
        <storage_dir>/alerts/<pulse_id>/<alert_id>.yaml
    """

    SECTIONS = ("signals", "destinations", "pulses", "alerts")

    def __init__(self, storage_dir: Path) -> None:
        self.storage_dir = Path(storage_dir)
        self._lock = asyncio.Lock()
        self._ensure_structure()

    def _ensure_structure(self) -> None:
        """Create directory structure for artifacts."""
        for section in self.SECTIONS:
            (self.storage_dir / section).mkdir(parents=True, exist_ok=True)

    # Signals

    async def get_signal(self, signal_id: str) -> Optional[Signal]:
        data = self._read(self._signal_path(signal_id))
        return Signal.from_dict(data) if data else None

    async def list_signals(self) -> list[Signal]:
        signals = [
            Signal.from_dict(data)
            for data in self._read_all(self.storage_dir / "signals")
        ]
        return sorted(signals, key=lambda s: s.created_at)

    async def list_active_signals(self) -> list[Signal]:
        return [signal for signal in await self.list_signals() if signal.is_active]

    async def save_signal(self, signal: Signal) -> Signal:
        self._write(self._signal_path(signal.id), signal.to_dict())
        return signal

    async def update_signal_last_scraped(self, signal_id: str, scraped_at: datetime) -> None:
        signal = await self.get_signal(signal_id)
        if signal is None:
            raise LookupError(f"Signal not found: {signal_id}")
        signal.last_scraped_at = scraped_at
        await self.save_signal(signal)

    async def delete_signal(self, signal_id: str) -> None:
        """Delete a signal with its alerts, pulses and destinations, in that order."""
        async with self._lock:
            pulses = self._read_all(self.storage_dir / "pulses" / signal_id)
            for pulse in pulses:
                self._remove_dir(self.storage_dir / "alerts" / pulse["id"])
            self._remove_dir(self.storage_dir / "pulses" / signal_id)
            self._remove_dir(self.storage_dir / "destinations" / signal_id)
            self._signal_path(signal_id).unlink(missing_ok=True)

    # Pulses

    async def create_pulse(
        self,
        signal_id: str,
        raw_data: str,
        status: PulseStatus,
        summary: Optional[str] = None,
        dry_run: bool = False,
    ) -> Pulse:
        pulse = Pulse(
            id=new_id(),
            signal_id=signal_id,
            raw_data=raw_data,
            status=status,
            summary=summary,
            dry_run=dry_run,
        )
        self._write(self._pulse_path(signal_id, pulse.id), pulse.to_dict())
        return pulse

    async def record_pulse(
        self,
        signal_id: str,
        raw_data: str,
        status: PulseStatus,
        summary: Optional[str],
        scraped_at: datetime,
        dry_run: bool = False,
    ) -> Pulse:
        async with self._lock:
            pulse = await self.create_pulse(signal_id, raw_data, status, summary, dry_run)
            try:
                await self.update_signal_last_scraped(signal_id, scraped_at)
            except Exception:
                self._pulse_path(signal_id, pulse.id).unlink(missing_ok=True)
                raise
            return pulse

    async def list_pulses(self, signal_id: str) -> list[Pulse]:
        pulses = [
            Pulse.from_dict(data)
            for data in self._read_all(self.storage_dir / "pulses" / signal_id)
        ]
        return sorted(pulses, key=lambda p: p.created_at)

    async def find_latest_success_pulse(
        self, signal_id: str, exclude_pulse_id: Optional[str] = None
    ) -> Optional[Pulse]:
        candidates = [
            pulse
            for pulse in await self.list_pulses(signal_id)
            if pulse.status == PulseStatus.SUCCESS
            and not pulse.dry_run
            and pulse.id != exclude_pulse_id
        ]
        return candidates[-1] if candidates else None

    # Destinations

    async def add_destination(
        self, signal_id: str, channel: AlertChannel, destination: str, is_active: bool = True
    ) -> AlertDestination:
        if await self.get_signal(signal_id) is None:
            raise LookupError(f"Signal not found: {signal_id}")
        record = AlertDestination(
            id=new_id(),
            signal_id=signal_id,
            channel=channel,
            destination=destination,
            is_active=is_active,
        )
        self._write(
            self.storage_dir / "destinations" / signal_id / f"{record.id}.yaml",
            record.to_dict(),
        )
        return record

    async def find_active_destinations(self, signal_id: str) -> list[AlertDestination]:
        return [
            AlertDestination.from_dict(data)
            for data in self._read_all(self.storage_dir / "destinations" / signal_id)
            if data.get("is_active", True)
        ]

    # Alerts

    async def create_alert(
        self,
        pulse_id: str,
        destination: AlertDestination,
        change_type: Optional[ChangeType],
        change_summary: str,
        change_details: str,
        status: AlertStatus,
        delivered_at: Optional[datetime] = None,
        error_message: Optional[str] = None,
    ) -> Alert:
        alert = Alert(
            id=new_id(),
            pulse_id=pulse_id,
            destination_id=destination.id,
            channel=destination.channel,
            change_type=change_type,
            change_summary=change_summary,
            change_details=change_details,
            status=status,
            delivered_at=delivered_at,
            error_message=error_message,
            created_at=utcnow(),
        )
        self._write(self.storage_dir / "alerts" / pulse_id / f"{alert.id}.yaml", alert.to_dict())
        return alert

    async def list_alerts(self, pulse_id: str) -> list[Alert]:
        alerts = [
            Alert.from_dict(data)
            for data in self._read_all(self.storage_dir / "alerts" / pulse_id)
        ]
        return sorted(alerts, key=lambda a: a.created_at)

    # Files

    def _signal_path(self, signal_id: str) -> Path:
        return self.storage_dir / "signals" / f"{signal_id}.yaml"

    def _pulse_path(self, signal_id: str, pulse_id: str) -> Path:
        return self.storage_dir / "pulses" / signal_id / f"{pulse_id}.yaml"

    def _write(self, path: Path, data: dict[str, Any]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_suffix(".yaml.tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            yaml.safe_dump(data, f, allow_unicode=True, default_flow_style=False, sort_keys=False)
        tmp_path.replace(path)

    def _read(self, path: Path) -> Optional[dict[str, Any]]:
        if not path.exists():
            return None
        with open(path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f) or None

    def _read_all(self, directory: Path) -> list[dict[str, Any]]:
        if not directory.is_dir():
            return []
        records = []
        for artifact_path in sorted(directory.glob("*.yaml")):
            try:
                data = self._read(artifact_path)
            except yaml.YAMLError as e:
                logger.warning("Skipping unreadable artifact %s: %s", artifact_path, e)
                continue
            if data:
                records.append(data)
        return records

    def _remove_dir(self, directory: Path) -> None:
        if not directory.is_dir():
            return
        for artifact_path in directory.glob("*.yaml"):
            artifact_path.unlink()
        directory.rmdir()
