# =============================================================================
# Key Bindings
# =============================================================================

from __future__ import annotations

from enum import Enum

from loguru import logger


class Command(Enum):
    ADD_CURRENT = "add_current"
    ADD_ALL = "add_all"
    DELETE = "delete"
    NEXT = "next"
    PREVIOUS = "previous"
    FOCUS = "focus"
    CLOSE = "close"


DEFAULT_BINDINGS: dict[str, Command] = {
    "a": Command.ADD_CURRENT,
    "A": Command.ADD_ALL,
    "d": Command.DELETE,
    "j": Command.NEXT,
    "Down": Command.NEXT,
    "k": Command.PREVIOUS,
    "Up": Command.PREVIOUS,
    "Enter": Command.FOCUS,
    "l": Command.FOCUS,
    "Esc": Command.CLOSE,
    "c": Command.CLOSE,
}


def build_bindings(keys_config: dict[str, list[str]] | None) -> dict[str, Command]:
    """
    Build the key -> command map from the ``[keys]`` config table.

    Commands missing from the table keep their default keys. Unknown command
    names are skipped with a warning.
    """
    if not keys_config:
        return dict(DEFAULT_BINDINGS)

    bindings = {
        key: command
        for key, command in DEFAULT_BINDINGS.items()
        if command.value not in keys_config
    }
    for name, keys in keys_config.items():
        try:
            command = Command(name)
        except ValueError:
            logger.warning(
                "Unknown command in key bindings",
                operation="build_bindings",
                status="skip",
                command=name,
            )
            continue
        if isinstance(keys, str):
            keys = [keys]
        for key in keys:
            bindings[key] = command
    return bindings


def resolve_key(bindings: dict[str, Command], key: str) -> Command | None:
    return bindings.get(key)
