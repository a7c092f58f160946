# =============================================================================
# Terminal Control
# =============================================================================
# Raw mode and alternate screen for the overlay pane, and decoding of raw
# stdin bytes into the key names used by the key bindings.

from __future__ import annotations

import contextlib
import os
import shutil
import termios
import tty

ESCAPE_SEQUENCES = {
    b"\x1b[A": "Up",
    b"\x1b[B": "Down",
    b"\x1b[C": "Right",
    b"\x1b[D": "Left",
    b"\x1bOA": "Up",
    b"\x1bOB": "Down",
    b"\x1bOC": "Right",
    b"\x1bOD": "Left",
}

INTERRUPT = "Ctrl-C"


def utf8_width(lead: int) -> int:
    """Byte length of the UTF-8 sequence starting with ``lead``."""
    if lead >= 0xF0:
        return 4
    if lead >= 0xE0:
        return 3
    if lead >= 0xC0:
        return 2
    return 1


def decode_keys(data: bytes) -> list[str]:
    """Split one read from stdin into key names.

    A lone ESC byte is the Escape key; ESC followed by a known sequence is
    an arrow key. Unknown escape sequences are dropped.
    """
    keys: list[str] = []
    i = 0
    while i < len(data):
        byte = data[i:i + 1]
        if byte == b"\x1b":
            seq = data[i:i + 3]
            if seq in ESCAPE_SEQUENCES:
                keys.append(ESCAPE_SEQUENCES[seq])
                i += 3
                continue
            if len(data) == i + 1:
                keys.append("Esc")
                i += 1
                continue
            if data[i + 1:i + 2] in (b"[", b"O"):
                # Skip an unknown CSI/SS3 sequence up to its final byte.
                j = i + 2
                while j < len(data) and not (0x40 <= data[j] <= 0x7E):
                    j += 1
                i = j + 1
                continue
            keys.append("Esc")
            i += 1
            continue
        if byte in (b"\r", b"\n"):
            keys.append("Enter")
        elif byte == b"\x03":
            keys.append(INTERRUPT)
        elif byte == b"\x7f":
            keys.append("Backspace")
        elif byte == b"\t":
            keys.append("Tab")
        else:
            width = utf8_width(data[i])
            char = data[i:i + width].decode("utf-8", errors="ignore")
            if char and char.isprintable():
                keys.append(char)
            i += width
            continue
        i += 1
    return keys


class TerminalController:
    """Manage terminal mode transitions for the overlay TUI."""

    def __init__(self, stdin_fd: int, stdout_fd: int) -> None:
        self.stdin_fd = stdin_fd
        self.stdout_fd = stdout_fd
        self._saved_tty_state = termios.tcgetattr(stdin_fd)

    def enable_tui_mode(self) -> None:
        """Enter raw alternate-screen mode with the cursor hidden."""
        tty.setraw(self.stdin_fd, termios.TCSAFLUSH)
        os.write(self.stdout_fd, b"\x1b[?1049h\x1b[?25l")

    def disable_tui_mode(self) -> None:
        os.write(self.stdout_fd, b"\x1b[?25h\x1b[?1049l")
        termios.tcsetattr(self.stdin_fd, termios.TCSAFLUSH, self._saved_tty_state)

    def size(self) -> tuple[int, int]:
        """Return (rows, cols)."""
        columns, lines = shutil.get_terminal_size()
        return lines, columns

    def draw(self, lines: list[str]) -> None:
        """Repaint the whole screen, one line per row."""
        out = ["\x1b[H\x1b[2J"]
        for row, line in enumerate(lines, start=1):
            out.append(f"\x1b[{row};1H{line}")
        os.write(self.stdout_fd, "".join(out).encode("utf-8"))

    @contextlib.contextmanager
    def raw_mode(self):
        """Context manager that brackets code with TUI enter/exit calls."""
        try:
            self.enable_tui_mode()
            yield
        finally:
            self.disable_tui_mode()
