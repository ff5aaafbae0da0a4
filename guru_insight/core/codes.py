"""Alert code bit layout and text parsing.

An alert code is an unsigned 32-bit value::

    bit 31      deadend flag (set on the fatal variant of an alert)
    bits 30-24  subsystem id (0x00 covers CPU traps and general errors)
    bits 23-0   general and specific error fields

Fatal and recoverable variants are independent table rows; nothing here
links them beyond the bit arithmetic.
"""
from __future__ import annotations

from typing import Optional

from guru_insight.core.errors import CodeFormatError


MAX_CODE = 0xFFFFFFFF
DEADEND_BIT = 0x80000000
SUBSYSTEM_MASK = 0x7F000000
SUBSYSTEM_SHIFT = 24
CODE_HEX_DIGITS = 8

HEX_DIGITS = frozenset("0123456789abcdefABCDEF")

SUBSYSTEM_NAMES: dict[int, str] = {
    0x00: "cpu/general",
    0x01: "exec.library",
    0x02: "graphics.library",
    0x03: "layers.library",
    0x04: "intuition.library",
    0x05: "math.library",
    0x06: "clist.library",
    0x07: "dos.library",
    0x08: "ramlib",
    0x09: "icon.library",
    0x0A: "expansion.library",
    0x0B: "diskfont.library",
    0x0C: "utility.library",
    0x10: "audio.device",
    0x11: "console.device",
    0x12: "gameport.device",
    0x13: "keyboard.device",
    0x14: "trackdisk.device",
    0x15: "timer.device",
    0x20: "cia.resource",
    0x21: "disk.resource",
    0x22: "misc.resource",
    0x30: "bootstrap",
    0x31: "workbench",
    0x32: "diskcopy",
    0x33: "gadtools.library",
}


def check_code(code: object) -> int:
    """Return *code* if it is an unsigned 32-bit int, else raise."""
    if isinstance(code, bool) or not isinstance(code, int):
        raise TypeError(f"alert code must be an int, got {type(code).__name__}")
    if code < 0 or code > MAX_CODE:
        raise ValueError(f"alert code out of 32-bit range: {code}")
    return code


def is_fatal(code: int) -> bool:
    return bool(code & DEADEND_BIT)


def recoverable_variant(code: int) -> int:
    return code & ~DEADEND_BIT & MAX_CODE


def fatal_variant(code: int) -> int:
    return (code | DEADEND_BIT) & MAX_CODE


def subsystem_id(code: int) -> int:
    return (code & SUBSYSTEM_MASK) >> SUBSYSTEM_SHIFT


def subsystem_name(code: int) -> Optional[str]:
    return SUBSYSTEM_NAMES.get(subsystem_id(code))


def format_code(code: int) -> str:
    return f"0x{code:08X}"


def _strip_prefix(text: str) -> str:
    if len(text) >= 2 and text[0] == "0" and text[1] in "xX":
        return text[2:]
    return text


def looks_like_hex(text: Optional[str]) -> bool:
    """True for an optional 0x/0X prefix followed by one or more hex digits."""
    if not text:
        return False
    digits = _strip_prefix(text)
    return bool(digits) and all(ch in HEX_DIGITS for ch in digits)


def parse_alert_code(text: Optional[str]) -> int:
    """Parse exactly eight hex digits (``8000000B`` or ``0x8000000B``)."""
    digits = _strip_prefix(text or "")
    if not looks_like_hex(text) or len(digits) != CODE_HEX_DIGITS:
        raise CodeFormatError(
            code="E_CODE_FORMAT",
            message=(
                f"invalid alert code {text!r}: must be exactly {CODE_HEX_DIGITS} "
                "hexadecimal digits (example: 8000000B or 0x8000000B)"
            ),
            path="code",
        )
    return int(digits, 16)
