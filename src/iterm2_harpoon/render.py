# =============================================================================
# Overlay Rendering
# =============================================================================
# Plain lines with ANSI styling; writing them to the terminal is the
# caller's job.

from __future__ import annotations

from .session import SessionContext

REVERSE = "\x1b[7m"
KEY_COLOR = "\x1b[35m"
RESET = "\x1b[0m"

WIDE_HINTS = [
    ("<a>", " add pane"),
    ("<A>", " add all"),
    ("<d>", " delete"),
    ("<j/k>", " navigate"),
    ("<Enter>", " focus"),
    ("<Esc>", " close"),
]

MEDIUM_HINTS = [
    ("<a>", " add"),
    ("<A>", " all"),
    ("<d>", " del"),
    ("<j/k>", " nav"),
    ("<Enter>", " go"),
    ("<Esc>", " quit"),
]

NARROW_HINTS = [
    ("<a>", " add"),
    ("<d>", " del"),
    ("<Enter>", " go"),
    ("<Esc>", ""),
]


def build_hint_string(
    parts: list[tuple[str, str]], separator: str
) -> tuple[str, list[tuple[int, int]]]:
    """Join hint parts and return the (start, end) span of every key."""
    result = ""
    key_ranges: list[tuple[int, int]] = []
    for i, (key, desc) in enumerate(parts):
        if i > 0:
            result += separator
        start = len(result)
        result += key
        key_ranges.append((start, len(result)))
        result += desc
    return result, key_ranges


def build_hint_line(cols: int) -> tuple[str, list[tuple[int, int]]]:
    if cols > 75:
        return build_hint_string(WIDE_HINTS, ", ")
    if cols > 50:
        return build_hint_string(MEDIUM_HINTS, ", ")
    return build_hint_string(NARROW_HINTS, " ")


def colorize(line: str, key_ranges: list[tuple[int, int]]) -> str:
    styled = ""
    cursor = 0
    for start, end in key_ranges:
        styled += line[cursor:start] + KEY_COLOR + line[start:end] + RESET
        cursor = end
    return styled + line[cursor:]


def render_lines(context: SessionContext, rows: int, cols: int) -> list[str]:
    """
    Lay out the overlay: centered header, one line per entry, hints last.

    When the entries do not fit between header and hint line, the visible
    window scrolls so the selected entry stays on screen.
    """
    header = f"==== {len(context.entries)} panes ===="
    lines = [" " * max(0, (cols - len(header)) // 2) + header]

    entry_rows = max(1, rows - 2)
    first = max(0, context.selected - entry_rows + 1)
    visible = context.entries[first:first + entry_rows]
    for idx, entry in enumerate(visible, start=first):
        text = str(entry)[:cols]
        lines.append(REVERSE + text + RESET if idx == context.selected else text)

    hint, key_ranges = build_hint_line(cols)
    body_rows = max(0, rows - 1)
    lines = lines[:body_rows]
    lines.extend([""] * (body_rows - len(lines)))
    lines.append(colorize(hint, key_ranges))
    return lines
