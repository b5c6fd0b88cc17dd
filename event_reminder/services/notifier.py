"""System-level alert side channels: desktop notifications and a short sound cue.

Both are best effort. They launch an external helper and return at once; the
scheduler never waits for the helper to finish.
"""
from __future__ import annotations

import asyncio
import logging
import shutil
import subprocess
import sys
from pathlib import Path
from typing import Protocol, Sequence

from ..errors import NotificationError
from ..models.event import Event

logger = logging.getLogger("event_reminder.services.notifier")

NOTIFICATION_TITLE = "Event Reminder"


class Notifier(Protocol):
    def probe(self) -> bool: ...

    def notify(self, event: Event) -> None: ...


class SoundCue(Protocol):
    def play(self) -> None: ...


def _launch(command: Sequence[str]) -> subprocess.Popen:
    try:
        return subprocess.Popen(
            list(command),
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )
    except OSError as exc:
        raise NotificationError(f"failed to launch {command[0]}: {exc}") from exc


def _applescript_quote(text: str) -> str:
    return '"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"'


class DesktopNotifier:
    """Raise a desktop notification with the event title as body."""

    def __init__(self, *, enabled: bool = True, platform: str | None = None) -> None:
        self._enabled = enabled
        self._platform = platform or sys.platform
        self._available: bool | None = None

    def probe(self) -> bool:
        """Check once whether a notification backend exists on this host."""

        if not self._enabled:
            self._available = False
        elif self._platform == "darwin":
            self._available = shutil.which("osascript") is not None
        else:
            self._available = shutil.which("notify-send") is not None
        if not self._available:
            logger.warning("desktop notifications unavailable platform=%s", self._platform)
        return self._available

    def notify(self, event: Event) -> None:
        if self._available is None:
            self.probe()
        if not self._available:
            logger.debug("notification skipped id=%s: no backend", event.id)
            return
        _launch(self._command(event))

    def _command(self, event: Event) -> list[str]:
        if self._platform == "darwin":
            script = (
                f"display notification {_applescript_quote(event.title)} "
                f"with title {_applescript_quote(NOTIFICATION_TITLE)}"
            )
            return ["osascript", "-e", script]
        return ["notify-send", "--app-name=event-reminder", NOTIFICATION_TITLE, event.title]


class SoundPlayer:
    """Play a sound file and cut it off after ``duration`` seconds."""

    PLAYERS = ("paplay", "aplay", "afplay")

    def __init__(self, sound_file: Path | None, *, duration: float = 3.0) -> None:
        self._sound_file = sound_file
        self._duration = duration
        self._player = next((name for name in self.PLAYERS if shutil.which(name)), None)

    def play(self) -> None:
        if self._sound_file is None:
            return
        if self._player is None or not self._sound_file.exists():
            logger.warning("sound cue unavailable file=%s player=%s", self._sound_file, self._player)
            return
        process = _launch([self._player, str(self._sound_file)])
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        loop.call_later(self._duration, _stop, process)


def _stop(process: subprocess.Popen) -> None:
    if process.poll() is None:
        process.terminate()


class NullNotifier:
    def probe(self) -> bool:
        return False

    def notify(self, event: Event) -> None:
        return None


class NullSoundPlayer:
    def play(self) -> None:
        return None
