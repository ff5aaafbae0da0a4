from __future__ import annotations

import threading
from typing import Iterator, Mapping, Optional

from guru_insight.core.model import TokenTable


TOKEN_PREFIX = "TOK_"
MAX_TOKEN_NAME = 7
TOKEN_NAME_CHARS = frozenset("0123456789_")

# One slot is reserved for the terminator the stored format historically
# carried, so at most DEFAULT_CAPACITY - 1 characters come out.
DEFAULT_CAPACITY = 2048


class ExpansionBuffer:
    """Bounded scratch space for one expansion at a time.

    Writes past ``capacity - 1`` characters are dropped silently. A buffer is
    not safe to share between threads; hand each thread its own or let
    :func:`expand_hint` pick the thread-local one.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._parts: list[str] = []
        self._size = 0

    @property
    def limit(self) -> int:
        return self.capacity - 1

    @property
    def full(self) -> bool:
        return self._size >= self.limit

    def __len__(self) -> int:
        return self._size

    def reset(self) -> None:
        self._parts.clear()
        self._size = 0

    def write(self, text: str) -> bool:
        """Append as much of *text* as fits. False when anything was cut."""
        room = self.limit - self._size
        if room <= 0:
            return not text
        chunk = text[:room]
        if chunk:
            self._parts.append(chunk)
            self._size += len(chunk)
        return len(chunk) == len(text)

    def getvalue(self) -> str:
        return "".join(self._parts)


_local = threading.local()


def thread_buffer(capacity: int = DEFAULT_CAPACITY) -> ExpansionBuffer:
    """Return this thread's scratch buffer, creating it on first use."""
    buf: Optional[ExpansionBuffer] = getattr(_local, "buffer", None)
    if buf is None or buf.capacity != capacity:
        buf = ExpansionBuffer(capacity)
        _local.buffer = buf
    return buf


def scan_token_name(text: str, start: int) -> str:
    """Read up to MAX_TOKEN_NAME digit/underscore characters from *start*."""
    end = start
    limit = min(len(text), start + MAX_TOKEN_NAME)
    while end < limit and text[end] in TOKEN_NAME_CHARS:
        end += 1
    return text[start:end]


def iter_token_refs(text: str) -> Iterator[tuple[int, str]]:
    """Yield (offset, name) for every TOK_ occurrence; name may be empty."""
    i = text.find(TOKEN_PREFIX)
    while i >= 0:
        name = scan_token_name(text, i + len(TOKEN_PREFIX))
        yield i, name
        i = text.find(TOKEN_PREFIX, i + len(TOKEN_PREFIX) + len(name))


def expand_hint(
    hint: str,
    tokens: TokenTable | Mapping[str, str],
    *,
    buffer: Optional[ExpansionBuffer] = None,
    capacity: int = DEFAULT_CAPACITY,
) -> str:
    """Replace every known ``TOK_<name>`` in *hint* with its phrase.

    - Unknown names pass through as the literal ``TOK_<name>``.
    - ``TOK_`` followed by no digit/underscore passes through as ``TOK_``;
      the next character is then scanned normally.
    - Output longer than ``capacity - 1`` characters is truncated.

    Scratch space is *buffer* when given, else this thread's buffer. The
    returned string is independent of the buffer.
    """
    buf = buffer if buffer is not None else thread_buffer(capacity)
    buf.reset()

    i = 0
    n = len(hint)
    while i < n and not buf.full:
        if hint.startswith(TOKEN_PREFIX, i):
            name = scan_token_name(hint, i + len(TOKEN_PREFIX))
            i += len(TOKEN_PREFIX) + len(name)
            if not name:
                buf.write(TOKEN_PREFIX)
                continue
            phrase = tokens.get(name)
            buf.write(phrase if phrase is not None else TOKEN_PREFIX + name)
            continue

        nxt = hint.find(TOKEN_PREFIX, i)
        if nxt < 0:
            nxt = n
        buf.write(hint[i:nxt])
        i = nxt

    return buf.getvalue()
