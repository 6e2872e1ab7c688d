"""Vim-style key notation and multi-key sequence matching."""

from __future__ import annotations

import re
import time
from typing import Any, Callable, Optional

_SPECIAL_KEYS = {
    "space": "space",
    "cr": "enter",
    "enter": "enter",
    "return": "enter",
    "esc": "escape",
    "tab": "tab",
    "bs": "backspace",
    "del": "delete",
    "up": "up",
    "down": "down",
    "left": "left",
    "right": "right",
    "home": "home",
    "end": "end",
    "pageup": "pageup",
    "pagedown": "pagedown",
    "lt": "<",
    "bslash": "\\",
    "bar": "|",
}
_MODIFIERS = {"c": "ctrl", "m": "alt", "a": "alt", "s": "shift"}
_GROUP_RE = re.compile(r"<([^<>]+)>")
_FKEY_RE = re.compile(r"f([1-9]|1[0-2])")

MATCHED = "matched"
PENDING = "pending"
NONE = "none"


def _parse_group(name: str, leader: str) -> tuple[str, ...]:
    lowered = name.lower()
    if lowered == "leader":
        return parse_keys(leader, leader="")
    if lowered in _SPECIAL_KEYS:
        return (_SPECIAL_KEYS[lowered],)
    if _FKEY_RE.fullmatch(lowered):
        return (lowered,)

    parts = lowered.split("-")
    if len(parts) >= 2 and all(part in _MODIFIERS for part in parts[:-1]) and parts[-1]:
        base = parts[-1]
        base = _SPECIAL_KEYS.get(base, base)
        if len(base) != 1 and base not in _SPECIAL_KEYS.values() and not _FKEY_RE.fullmatch(base):
            raise ValueError(f"Unknown key in <{name}>")
        modifiers = [_MODIFIERS[part] for part in parts[:-1]]
        return ("+".join(modifiers + [base]),)
    raise ValueError(f"Unknown key notation <{name}>")


def parse_keys(notation: str, leader: str = "\\") -> tuple[str, ...]:
    """Translate Vim key notation into Textual key names.

    ``parse_keys("<leader>jj")`` gives ``("\\\\", "j", "j")``. Plain characters
    are kept as the character itself; ``<...>`` groups map to Textual key
    names such as ``"ctrl+j"`` or ``"enter"``.
    """
    keys: list[str] = []
    pos = 0
    while pos < len(notation):
        match = _GROUP_RE.match(notation, pos)
        if match:
            keys.extend(_parse_group(match.group(1), leader))
            pos = match.end()
            continue
        char = notation[pos]
        keys.append("space" if char == " " else char)
        pos += 1
    if not keys:
        raise ValueError("Empty key sequence")
    return tuple(keys)


def key_matches(expected: str, key: str, character: Optional[str]) -> bool:
    """Compare one parsed key against a Textual key event."""
    if expected == key:
        return True
    return len(expected) == 1 and character == expected


class KeySequenceMatcher:
    """Match multi-key sequences typed one key at a time.

    Keys typed so far stay pending until a sequence completes, no sequence
    can continue, or ``timeout_ms`` passes between two keys.
    """

    def __init__(self, timeout_ms: int = 1000, clock: Callable[[], float] = time.monotonic) -> None:
        self.timeout_ms = timeout_ms
        self._clock = clock
        self._sequences: dict[tuple[str, ...], Any] = {}
        self._pending: list[tuple[str, Optional[str]]] = []
        self._last_key_at = 0.0

    def add(self, keys: tuple[str, ...], action: Any) -> None:
        self._sequences[keys] = action

    def remove(self, keys: tuple[str, ...]) -> None:
        self._sequences.pop(keys, None)

    @property
    def pending(self) -> bool:
        return bool(self._pending)

    def reset(self) -> None:
        self._pending.clear()

    def feed(self, key: str, character: Optional[str] = None) -> tuple[str, Any]:
        """Feed one key and return ``(status, action)``."""
        now = self._clock()
        if self._pending and (now - self._last_key_at) * 1000 > self.timeout_ms:
            self._pending.clear()
        self._last_key_at = now

        typed = self._pending + [(key, character)]
        candidates = [
            (keys, action)
            for keys, action in self._sequences.items()
            if len(keys) >= len(typed)
            and all(key_matches(exp, k, c) for exp, (k, c) in zip(keys, typed))
        ]
        if not candidates:
            self._pending.clear()
            return NONE, None

        for keys, action in candidates:
            if len(keys) == len(typed):
                self._pending.clear()
                return MATCHED, action

        self._pending = typed
        return PENDING, None
