"""Main entry point for the solfret trainer.

Generates one practice sequence from the configured settings and plays it
through a MIDI output port (or just logs it when no port is given),
exiting once playback returns to idle.
"""

import logging
from argparse import ArgumentParser, Namespace
from dataclasses import replace
from random import Random
from typing import Optional

from solfret import constants
from solfret.audio import AudioBackend, LogBackend, MidiBackend
from solfret.config import (
    DoMode,
    Settings,
    SettingsStore,
    init_settings,
    normalize_settings,
)
from solfret.fretboard import Position
from solfret.midi import MidiOutput, output_port_names
from solfret.playback import PlaybackEvent, PlaybackState
from solfret.scale import parse_note_name
from solfret.timer import TimerLoop
from solfret.trainer import Trainer


def make_parser() -> ArgumentParser:
    """Create the command-line argument parser."""
    parser = ArgumentParser(description="Play a solfege sight-reading sequence")
    parser.add_argument("--log-level", default="INFO")
    parser.add_argument("--settings", help="JSON settings file to load")
    parser.add_argument(
        "--save", action="store_true", help="write the effective settings back"
    )
    parser.add_argument("--bpm", type=int)
    parser.add_argument("--length", type=int, help="sequence length")
    parser.add_argument("--do-note", help="anchor do by note name, e.g. G or F#")
    parser.add_argument(
        "--do-position", help="anchor do at a position, as STRING:FRET"
    )
    parser.add_argument("--prepare-delay-ms", type=int)
    parser.add_argument("--port", help="MIDI output port; logs notes if omitted")
    parser.add_argument(
        "--virtual",
        action="store_true",
        help=f"create a virtual port (named {constants.DEFAULT_PORT_NAME} by default)",
    )
    parser.add_argument("--seed", type=int)
    parser.add_argument(
        "--list-ports", action="store_true", help="list MIDI output ports and exit"
    )
    return parser


def configure_logging(log_level: str) -> None:
    """Configure the logging system with the specified log level.

    Args:
        log_level: The logging level (e.g., 'DEBUG', 'INFO', 'WARNING').
    """
    logging.basicConfig(
        format="%(asctime)s %(levelname)s %(filename)s:%(lineno)d -- %(message)s",
        level=log_level,
    )


def settings_from_args(base: Settings, args: Namespace) -> Settings:
    """Apply command-line overrides to loaded settings.

    Naming a do note or position also selects that do mode.
    """
    settings = base
    if args.bpm is not None:
        settings = replace(settings, bpm=args.bpm)
    if args.length is not None:
        settings = replace(settings, sequence_length=args.length)
    if args.prepare_delay_ms is not None:
        settings = replace(settings, prepare_delay_ms=args.prepare_delay_ms)
    if args.do_note is not None:
        settings = replace(
            settings, do_mode=DoMode.Pitch, do_note_name=parse_note_name(args.do_note)
        )
    if args.do_position is not None:
        settings = replace(
            settings,
            do_mode=DoMode.Position,
            do_position=Position.parse(args.do_position),
        )
    return normalize_settings(settings)


def log_event(event: PlaybackEvent) -> None:
    if event.note is not None:
        logging.info(
            "[%d] %d -> string %d fret %d (%s)",
            event.cursor,
            event.note.digit,
            event.note.position.string,
            event.note.position.fret,
            event.note.pitch_id,
        )
    else:
        logging.info("state %s", event.state.name)


def run(
    settings: Settings, backend: AudioBackend, timers: TimerLoop, seed: Optional[int]
) -> None:
    """Play one sequence to completion on the given timer loop."""
    trainer = Trainer(settings, timers, backend, rng=Random(seed), observer=log_event)
    try:
        trainer.generate()
        trainer.play()
        timers.run_until_idle()
    except KeyboardInterrupt:
        pass
    finally:
        if trainer.state != PlaybackState.Idle:
            logging.warning("stopping while %s", trainer.state.name)
        logging.info("final stop")
        trainer.close()


def main() -> None:
    """Parse arguments, load settings, open the output and play."""
    parser = make_parser()
    args = parser.parse_args()
    configure_logging(args.log_level)
    if args.list_ports:
        for name in output_port_names():
            logging.info("output port: %s", name)
        return
    store = SettingsStore(args.settings) if args.settings is not None else None
    try:
        base = store.load() if store is not None else init_settings()
        settings = settings_from_args(base, args)
    except ValueError as e:
        parser.error(str(e))
    if store is not None and args.save:
        store.save(settings)
    timers = TimerLoop()
    if args.port is not None or args.virtual:
        port_name = args.port if args.port is not None else constants.DEFAULT_PORT_NAME
        if not args.virtual and port_name not in output_port_names():
            parser.error(f"no MIDI output named {port_name!r}, see --list-ports")
        output = MidiOutput.open(port_name, virtual=args.virtual)
        try:
            run(settings, MidiBackend(output, timers), timers, args.seed)
        finally:
            output.reset()
            output.close()
    else:
        run(settings, LogBackend(), timers, args.seed)
    logging.info("done")


if __name__ == "__main__":
    main()
