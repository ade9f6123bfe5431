"""MIDI output for sounding trainer notes.

Notes are sent as mido messages to an output port, either an existing
synth port or a virtual port other software can listen on.
"""

from __future__ import annotations

import logging
from abc import ABCMeta, abstractmethod
from typing import List, cast

import mido
from mido.frozen import FrozenMessage
from mido.ports import BaseOutput

from solfret.base import Closeable, Resettable


def note_on_msg(note: int, velocity: int, channel: int) -> FrozenMessage:
    return FrozenMessage(type="note_on", channel=channel, note=note, velocity=velocity)


def note_off_msg(note: int, channel: int) -> FrozenMessage:
    return FrozenMessage(type="note_off", channel=channel, note=note, velocity=0)


def output_port_names() -> List[str]:
    """Names of MIDI output ports visible to the active mido backend."""
    return cast(List[str], mido.get_output_names())


class MidiSink(metaclass=ABCMeta):
    """Abstract destination for MIDI messages."""

    @abstractmethod
    def send_msg(self, msg: FrozenMessage) -> None:
        raise NotImplementedError()


class MidiOutput(MidiSink, Resettable, Closeable):
    """A mido output port."""

    @classmethod
    def open(cls, out_port_name: str, virtual: bool = False) -> MidiOutput:
        """Open an output port by name.

        Args:
            out_port_name: The port to open, or to create when virtual.
            virtual: Create a virtual port instead of connecting to one.

        Returns:
            A new MidiOutput on that port.
        """
        out_port = mido.open_output(out_port_name, virtual=virtual)
        logging.info(
            "opened %s MIDI output %s", "virtual" if virtual else "system", out_port_name
        )
        return cls(out_port_name=out_port_name, out_port=out_port)

    def __init__(self, out_port_name: str, out_port: BaseOutput) -> None:
        self._out_port_name = out_port_name
        self._out_port = out_port

    @property
    def name(self) -> str:
        return self._out_port_name

    def reset(self) -> None:
        """Send all-notes-off and reset controllers on the port."""
        self._out_port.reset()

    def close(self) -> None:
        self._out_port.close()

    def send_msg(self, msg: FrozenMessage) -> None:
        logging.debug("Sending message to %s: %s", self._out_port_name, msg)
        self._out_port.send(msg)
