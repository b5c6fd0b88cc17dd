"""Command line entry point for the project."""
from __future__ import annotations

import argparse
import asyncio
import logging
from typing import Sequence

from dotenv import load_dotenv

from .config import Config, ConfigError, load_config
from .core.engine import ReminderEngine
from .errors import InvalidEventInput
from .logging_config import setup_logging
from .models.event import Event
from .services.notifier import NullNotifier, NullSoundPlayer
from .utils.datetime import resolve_timezone
from .utils.texts import format_event_line, sorted_for_display


_LOGGER = logging.getLogger(__name__)


class ConsoleReminderPresenter:
    """Prints due reminders to stdout."""

    def __call__(self, event: Event) -> None:
        _LOGGER.info("Presenting reminder for event %s", event.id)
        print(f"⏰ Event Reminder: {event.title}")
        if event.description:
            print(f"   {event.description}")
        print(f"   Scheduled at: {event.date} {event.time}")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Personal event reminders")
    subparsers = parser.add_subparsers(dest="command")

    run_parser = subparsers.add_parser("run", help="Watch events and raise reminders (default)")
    run_parser.set_defaults(command="run")

    subparsers.add_parser("list", help="List events ordered by date and time")

    add_parser = subparsers.add_parser("add", help="Create an event")
    add_parser.add_argument("title")
    add_parser.add_argument("date", help="YYYY-MM-DD")
    add_parser.add_argument("time", help="HH:MM")
    add_parser.add_argument("--description", default="")

    edit_parser = subparsers.add_parser("edit", help="Change an event")
    edit_parser.add_argument("event_id", type=int)
    edit_parser.add_argument("--title")
    edit_parser.add_argument("--description")
    edit_parser.add_argument("--date")
    edit_parser.add_argument("--time")

    delete_parser = subparsers.add_parser("delete", help="Delete an event")
    delete_parser.add_argument("event_id", type=int)

    toggle_parser = subparsers.add_parser("toggle", help="Mark an event done or not done")
    toggle_parser.add_argument("event_id", type=int)

    parser.set_defaults(command="run")
    return parser


async def _run(config: Config) -> None:
    engine = ReminderEngine.from_config(config)
    engine.on_reminder_due(ConsoleReminderPresenter())
    async with engine:
        _LOGGER.info("Watching %s events", len(engine.list_events()))
        await asyncio.Event().wait()


async def _one_shot(config: Config, args: argparse.Namespace) -> int:
    engine = ReminderEngine.from_config(config, notifier=NullNotifier(), sound=NullSoundPlayer())
    await engine.load()
    tz = resolve_timezone(config.reminder.timezone)

    if args.command == "list":
        events = engine.list_events()
        if not events:
            print("No events added yet.")
        for event in sorted_for_display(events, tz):
            print(format_event_line(event, tz=tz))
        return 0

    if args.command == "add":
        event = await engine.create_event(args.title, args.description, args.date, args.time)
        print(f"Event added successfully. (id {event.id})")
        return 0

    if args.command == "edit":
        fields = {
            name: getattr(args, name)
            for name in ("title", "description", "date", "time")
            if getattr(args, name) is not None
        }
        if not await engine.edit_event(args.event_id, **fields):
            print(f"Event {args.event_id} not found.")
            return 1
        print("Event updated successfully.")
        return 0

    if args.command == "delete":
        if not await engine.delete_event(args.event_id):
            print(f"Event {args.event_id} not found.")
            return 1
        print("Event deleted.")
        return 0

    if args.command == "toggle":
        event = await engine.toggle_complete(args.event_id)
        if event is None:
            print(f"Event {args.event_id} not found.")
            return 1
        print(f"Event marked {'done' if event.completed else 'not done'}.")
        return 0

    raise ValueError(f"unknown command {args.command!r}")


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    load_dotenv()

    try:
        config = load_config()
    except ConfigError as exc:
        parser.exit(2, f"configuration error: {exc}\n")

    console_level = logging.INFO if args.command == "run" else logging.WARNING
    setup_logging(config.logs_dir, console_level=console_level)

    if args.command == "run":
        try:
            asyncio.run(_run(config))
        except KeyboardInterrupt:
            _LOGGER.info("Interrupted, shutting down")
        return 0

    try:
        return asyncio.run(_one_shot(config, args))
    except InvalidEventInput as exc:
        print(str(exc))
        return 2


__all__ = ["main"]
