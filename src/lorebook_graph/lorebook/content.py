"""The bracketed micro-format used inside ``content`` and ``contentShort``.

Lorebook text is stored as ``\\n{key}=[{body}]``, where the key is the
entry's name, or ``Current event`` for events. Text that doesn't follow
the format is left alone.

A body containing ``]`` followed by trailing text outside the brackets
cannot be told apart from surrounding text and won't decode cleanly.
"""

import re

EVENT_KEY = "Current event"

_BARE_PATTERN = re.compile(r"\s*\n?\[(.*)\]\s*", re.DOTALL)


def content_key(name: str, node_type: str) -> str:
    """The key written before the brackets for a node."""
    return EVENT_KEY if node_type == "event" else name


def decode(raw: str | None, name: str, node_type: str) -> str:
    """Extract the body from ``\\nKey=[body]`` (or a bare ``[body]``).

    Anything that doesn't match is returned unchanged.
    """
    if not raw:
        return ""

    key = re.escape(content_key(name, node_type))
    match = re.fullmatch(rf"\s*\n?{key}\s*=\s*\[(.*)\]\s*", raw, re.DOTALL)
    if match:
        return match.group(1)

    match = _BARE_PATTERN.fullmatch(raw)
    if match:
        return match.group(1)

    return raw


def encode(body: str | None, name: str, node_type: str) -> str:
    """Wrap a body as ``\\nKey=[body]``; empty bodies encode to ``""``."""
    if not body:
        return ""
    return f"\n{content_key(name, node_type)}=[{body}]"
