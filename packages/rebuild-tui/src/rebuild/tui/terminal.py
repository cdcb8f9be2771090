"""Terminal driver abstraction for raw-mode byte input and ANSI output.

Provides a ``TerminalDriver`` protocol and two concrete implementations:
``PosixTerminal`` (termios/select) and ``WindowsTerminal`` (msvcrt plus
virtual-terminal processing). Exactly one driver is chosen per process by
:func:`get_terminal`; nothing else in the package branches on platform.
"""

from __future__ import annotations

import atexit
import logging
import os
import sys
import time
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Iterator, Protocol

if os.name == "nt":
    import ctypes
    import msvcrt
else:
    import select
    import termios
    import tty

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# ANSI escape constants
# ---------------------------------------------------------------------------

_HIDE_CURSOR = "\x1b[?25l"
_SHOW_CURSOR = "\x1b[?25h"
_CLEAR_SCREEN = "\x1b[2J\x1b[H"
_RESET = "\x1b[0m"
_MOVE_CURSOR_FMT = "\x1b[{};{}H"
_FG_ANSI_FMT = "\x1b[{}m"
_FG_RGB_FMT = "\x1b[38;2;{};{};{}m"

FALLBACK_SIZE = (25, 80)


def move_cursor_sequence(row: int, col: int) -> str:
    return _MOVE_CURSOR_FMT.format(row, col)


def fg_ansi_sequence(code: int) -> str:
    return _FG_ANSI_FMT.format(code)


def fg_rgb_sequence(r: int, g: int, b: int) -> str:
    return _FG_RGB_FMT.format(r, g, b)


# ---------------------------------------------------------------------------
# TerminalDriver protocol
# ---------------------------------------------------------------------------


class TerminalDriver(Protocol):
    """Interface for raw terminal control, output primitives and byte input."""

    supports_rgb: bool

    def enter_raw_mode(self) -> bool: ...

    def leave_raw_mode(self) -> None: ...

    def terminal_size(self) -> tuple[int, int]: ...

    def write(self, data: str) -> None: ...

    def flush(self) -> None: ...

    def move_cursor(self, row: int, col: int) -> None: ...

    def set_fg_ansi(self, code: int) -> None: ...

    def set_fg_rgb(self, r: int, g: int, b: int) -> None: ...

    def reset_formatting(self) -> None: ...

    def clear_screen(self) -> None: ...

    def hide_cursor(self) -> None: ...

    def show_cursor(self) -> None: ...

    def read_byte(self) -> int | None: ...

    def byte_available(self, timeout: float) -> bool: ...


# ---------------------------------------------------------------------------
# Shared ANSI writer
# ---------------------------------------------------------------------------


class _AnsiTerminal(ABC):
    """Output primitives shared by both platform drivers.

    Every write is best effort: ``OSError`` and ``ValueError`` from the
    underlying stream are swallowed.
    """

    supports_rgb = True

    def __init__(self) -> None:
        self._raw_active = False
        self._atexit_registered = False

    # -- size ---------------------------------------------------------------

    def terminal_size(self) -> tuple[int, int]:
        """Return ``(rows, cols)``, or ``(25, 80)`` when stdout is not a tty."""
        try:
            size = os.get_terminal_size(sys.stdout.fileno())
        except (ValueError, OSError):
            return FALLBACK_SIZE
        if size.lines <= 0 or size.columns <= 0:
            return FALLBACK_SIZE
        return size.lines, size.columns

    # -- output -------------------------------------------------------------

    def write(self, data: str) -> None:
        self._raw_write(data)

    def flush(self) -> None:
        try:
            sys.stdout.flush()
        except (OSError, ValueError):
            pass

    def move_cursor(self, row: int, col: int) -> None:
        self._raw_write(move_cursor_sequence(row, col))

    def set_fg_ansi(self, code: int) -> None:
        self._raw_write(fg_ansi_sequence(code))

    def set_fg_rgb(self, r: int, g: int, b: int) -> None:
        if self.supports_rgb:
            self._raw_write(fg_rgb_sequence(r, g, b))

    def reset_formatting(self) -> None:
        self._raw_write(_RESET)

    def clear_screen(self) -> None:
        self._raw_write(_CLEAR_SCREEN)

    def hide_cursor(self) -> None:
        self._raw_write(_HIDE_CURSOR)

    def show_cursor(self) -> None:
        self._raw_write(_SHOW_CURSOR)

    # -- raw mode lifecycle -------------------------------------------------

    def enter_raw_mode(self) -> bool:
        """Take exclusive control of the terminal.

        Returns False (and leaves the terminal untouched) when raw mode
        cannot be acquired, e.g. when stdin is not a tty.
        """
        if self._raw_active:
            return True
        if not self._acquire():
            return False
        self._raw_active = True
        if not self._atexit_registered:
            atexit.register(self.leave_raw_mode)
            self._atexit_registered = True
        self.clear_screen()
        self.hide_cursor()
        self.flush()
        return True

    def leave_raw_mode(self) -> None:
        """Restore the saved terminal mode. Safe to call more than once."""
        if not self._raw_active:
            return
        self._raw_active = False
        self.show_cursor()
        self.reset_formatting()
        self.flush()
        self._release()

    @property
    def raw_active(self) -> bool:
        return self._raw_active

    @abstractmethod
    def _acquire(self) -> bool:
        """Switch the console into raw mode. Returns False if it cannot."""

    @abstractmethod
    def _release(self) -> None:
        """Restore the console mode saved by ``_acquire``."""

    @abstractmethod
    def read_byte(self) -> int | None: ...

    @abstractmethod
    def byte_available(self, timeout: float) -> bool: ...

    # -- private: raw write ------------------------------------------------

    def _raw_write(self, data: str) -> None:
        try:
            sys.stdout.write(data)
        except (OSError, ValueError):
            pass


# ---------------------------------------------------------------------------
# POSIX implementation
# ---------------------------------------------------------------------------


class PosixTerminal(_AnsiTerminal):
    """Driver backed by termios for mode control and select for waits."""

    def __init__(self) -> None:
        super().__init__()
        self._original_attrs: list | None = None

    def _acquire(self) -> bool:
        try:
            fd = sys.stdin.fileno()
            self._original_attrs = termios.tcgetattr(fd)
            attrs = termios.tcgetattr(fd)
        except (termios.error, ValueError, OSError) as exc:
            logger.warning("Raw mode unavailable, continuing without it: %s", exc)
            self._original_attrs = None
            return False

        attrs[tty.LFLAG] &= ~(termios.ICANON | termios.ECHO)
        attrs[tty.IFLAG] &= ~termios.ICRNL
        attrs[tty.CC][termios.VMIN] = 1
        attrs[tty.CC][termios.VTIME] = 0
        try:
            termios.tcsetattr(fd, termios.TCSAFLUSH, attrs)
        except termios.error as exc:
            logger.warning("Failed to apply raw mode: %s", exc)
            self._original_attrs = None
            return False
        logger.debug("Entered raw mode on fd %d", fd)
        return True

    def _release(self) -> None:
        if self._original_attrs is None:
            return
        try:
            termios.tcsetattr(sys.stdin.fileno(), termios.TCSADRAIN, self._original_attrs)
        except (termios.error, ValueError, OSError) as exc:
            logger.warning("Failed to restore terminal mode: %s", exc)
        self._original_attrs = None
        logger.debug("Left raw mode")

    def read_byte(self) -> int | None:
        """Block until one byte is read from stdin. None on end of input."""
        try:
            data = os.read(sys.stdin.fileno(), 1)
        except (OSError, ValueError):
            return None
        if not data:
            return None
        return data[0]

    def byte_available(self, timeout: float) -> bool:
        try:
            ready, _, _ = select.select([sys.stdin], [], [], max(timeout, 0.0))
        except (OSError, ValueError):
            return False
        return bool(ready)


# ---------------------------------------------------------------------------
# Windows implementation
# ---------------------------------------------------------------------------

_STD_OUTPUT_HANDLE = -11
_ENABLE_VIRTUAL_TERMINAL_PROCESSING = 0x0004

# Console scan codes following a 0x00/0xE0 prefix, rewritten as the ANSI
# sequences a POSIX terminal would send for the same key.
_WINDOWS_SCAN_CODES: dict[int, bytes] = {
    72: b"\x1b[A",
    80: b"\x1b[B",
    77: b"\x1b[C",
    75: b"\x1b[D",
    71: b"\x1b[H",
    79: b"\x1b[F",
    73: b"\x1b[5~",
    81: b"\x1b[6~",
    83: b"\x1b[3~",
}
_WINDOWS_UNKNOWN_SEQUENCE = b"\x1b[?"
_WINDOWS_PREFIXES = (0x00, 0xE0)
_WINDOWS_POLL_INTERVAL = 0.005


class WindowsTerminal(_AnsiTerminal):
    """Driver backed by msvcrt for input and VT processing for output."""

    def __init__(self) -> None:
        super().__init__()
        self._pending = bytearray()
        self._original_mode: int | None = None
        self.supports_rgb = False

    def _acquire(self) -> bool:
        try:
            kernel32 = ctypes.windll.kernel32
            handle = kernel32.GetStdHandle(_STD_OUTPUT_HANDLE)
            mode = ctypes.c_uint32()
            if not kernel32.GetConsoleMode(handle, ctypes.byref(mode)):
                logger.warning("Console mode unavailable, continuing without VT output")
                return True
            self._original_mode = mode.value
            enabled = kernel32.SetConsoleMode(
                handle, mode.value | _ENABLE_VIRTUAL_TERMINAL_PROCESSING
            )
            self.supports_rgb = bool(enabled)
        except (AttributeError, OSError) as exc:
            logger.warning("Failed to configure console: %s", exc)
            return False
        return True

    def _release(self) -> None:
        if self._original_mode is None:
            return
        try:
            kernel32 = ctypes.windll.kernel32
            kernel32.SetConsoleMode(kernel32.GetStdHandle(_STD_OUTPUT_HANDLE), self._original_mode)
        except (AttributeError, OSError) as exc:
            logger.warning("Failed to restore console mode: %s", exc)
        self._original_mode = None

    def read_byte(self) -> int | None:
        if not self._pending:
            self._fill_pending()
        if not self._pending:
            return None
        return self._pending.pop(0)

    def byte_available(self, timeout: float) -> bool:
        if self._pending:
            return True
        deadline = time.monotonic() + max(timeout, 0.0)
        while True:
            if msvcrt.kbhit():
                return True
            if time.monotonic() >= deadline:
                return False
            time.sleep(_WINDOWS_POLL_INTERVAL)

    def _fill_pending(self) -> None:
        raw = msvcrt.getch()
        if not raw:
            return
        code = raw[0]
        if code in _WINDOWS_PREFIXES:
            scan = msvcrt.getch()
            sequence = _WINDOWS_SCAN_CODES.get(scan[0] if scan else -1, _WINDOWS_UNKNOWN_SEQUENCE)
            self._pending.extend(sequence)
        else:
            self._pending.append(code)


# ---------------------------------------------------------------------------
# Process-wide driver selection
# ---------------------------------------------------------------------------

_terminal: TerminalDriver | None = None


def get_terminal() -> TerminalDriver:
    """Return the driver for this platform, creating it on first use."""
    global _terminal
    if _terminal is None:
        _terminal = WindowsTerminal() if os.name == "nt" else PosixTerminal()
        logger.debug("Selected terminal driver %s", type(_terminal).__name__)
    return _terminal


@contextmanager
def raw_mode(driver: TerminalDriver) -> Iterator[bool]:
    """Hold raw mode for the duration of the block.

    Yields whether raw mode was actually acquired. The prior mode is
    restored on every exit path.
    """
    acquired = driver.enter_raw_mode()
    try:
        yield acquired
    finally:
        driver.leave_raw_mode()
