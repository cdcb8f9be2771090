"""InputDecoder turns a raw byte stream into discrete key events.

A lone ESC is ambiguous: it is either the Escape key or the first byte of
a CSI/SS3 sequence such as ``ESC [ A``. The decoder waits a short bounded
time (``ESCAPE_TIMEOUT``) for a follow-up byte and reports Escape if none
arrives.
"""

from __future__ import annotations

from enum import Enum
from typing import Protocol

from rebuild.tui.keys import Key, KeyEvent

ESC = 0x1B
ETX = 0x03
ESCAPE_TIMEOUT = 0.010


class ByteSource(Protocol):
    def read_byte(self) -> int | None: ...

    def byte_available(self, timeout: float) -> bool: ...


class DecoderState(Enum):
    IDLE = "idle"
    SAW_ESCAPE = "sawEscape"
    SAW_CSI_PREFIX = "sawCsiPrefix"


# Terminators that complete a sequence on their own.
_CSI_KEYS: dict[int, Key] = {
    ord("A"): Key.ARROW_UP,
    ord("B"): Key.ARROW_DOWN,
    ord("C"): Key.ARROW_RIGHT,
    ord("D"): Key.ARROW_LEFT,
    ord("H"): Key.HOME,
    ord("F"): Key.END,
}

# Terminators followed by one trailing byte (normally ``~``) to discard.
_CSI_TILDE_KEYS: dict[int, Key] = {
    ord("5"): Key.PAGE_UP,
    ord("6"): Key.PAGE_DOWN,
    ord("3"): Key.DELETE,
}

_CONTROL_KEYS: dict[int, Key] = {
    ord("\n"): Key.ENTER,
    ord("\r"): Key.ENTER,
    ord(" "): Key.SPACE,
    ord("\t"): Key.TAB,
    8: Key.BACKSPACE,
    127: Key.BACKSPACE,
    ETX: Key.ESCAPE,
}

_CSI_PREFIXES = (ord("["), ord("O"))


def decode_control_byte(byte: int) -> KeyEvent:
    """Decode a single byte received while idle."""
    key = _CONTROL_KEYS.get(byte)
    if key is not None:
        return KeyEvent(key)
    if 0x20 <= byte <= 0x7E:
        return KeyEvent(Key.NORMAL, chr(byte))
    return KeyEvent(Key.UNKNOWN)


class InputDecoder:
    """Stateful decoder reading from a :class:`ByteSource`.

    The decoder is not tied to any display state; ``state`` is exposed for
    inspection and always returns to ``IDLE`` once an event is produced.
    """

    def __init__(self, source: ByteSource, escape_timeout: float = ESCAPE_TIMEOUT) -> None:
        self._source = source
        self._escape_timeout = escape_timeout
        self.state = DecoderState.IDLE
        self.at_eof = False

    def poll(self, timeout: float) -> KeyEvent | None:
        """Return the next event, or None if no byte arrives within *timeout*."""
        if not self._source.byte_available(timeout):
            return None
        return self.read_event()

    def pending(self) -> bool:
        """True if another byte is ready right now."""
        return self._source.byte_available(0)

    def read_event(self) -> KeyEvent:
        """Block for one byte and decode a complete key event."""
        self.state = DecoderState.IDLE
        try:
            return self._decode()
        finally:
            self.state = DecoderState.IDLE

    def _decode(self) -> KeyEvent:
        byte = self._source.read_byte()
        if byte is None:
            self.at_eof = True
            return KeyEvent(Key.UNKNOWN)
        if byte != ESC:
            return decode_control_byte(byte)

        self.state = DecoderState.SAW_ESCAPE
        if not self._source.byte_available(self._escape_timeout):
            return KeyEvent(Key.ESCAPE)

        follow = self._source.read_byte()
        if follow == ESC or follow is None:
            return KeyEvent(Key.ESCAPE)
        if follow not in _CSI_PREFIXES:
            return KeyEvent(Key.UNKNOWN)

        self.state = DecoderState.SAW_CSI_PREFIX
        terminator = self._source.read_byte()
        if terminator is None:
            return KeyEvent(Key.UNKNOWN)
        key = _CSI_KEYS.get(terminator)
        if key is not None:
            return KeyEvent(key)
        key = _CSI_TILDE_KEYS.get(terminator)
        if key is not None:
            self._source.read_byte()
            return KeyEvent(key)
        return KeyEvent(Key.UNKNOWN)
