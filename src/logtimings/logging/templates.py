"""
Message templates with named holes.

A template such as ``"User {UserId} saved {Count:,} rows"`` is rendered by
binding positional arguments to holes, one argument per hole occurrence, in
order of appearance. The bound values are also returned as structured
properties, so a renderer can emit both the human-readable message and the
individual fields. When a name occurs more than once, the property keeps the
value bound to its last occurrence.

Rendering never raises. ``{{`` and ``}}`` are literal braces, an unmatched
``{`` or ``}`` is kept as literal text and rendering continues after it,
missing arguments leave the hole text in place, surplus arguments are
reported under ``extra_args``, and a format spec that does not suit the value
falls back to ``str(value)``.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from typing import Any, NamedTuple

TEMPLATE_PROPERTY = "message_template"
EXTRA_ARGS_PROPERTY = "extra_args"

_CONVERSIONS = ("r", "s", "a")


@dataclass(frozen=True)
class RenderedMessage:
    """A rendered template and the properties bound while rendering it."""

    message: str
    properties: dict[str, Any] = field(default_factory=dict)


class _Hole(NamedTuple):
    text: str
    name: str
    spec: str | None
    conversion: str | None


def _parse_hole(text: str) -> _Hole:
    name, _, spec = text[1:-1].partition(":")
    conversion = None
    if "!" in name:
        base, _, candidate = name.rpartition("!")
        if candidate in _CONVERSIONS:
            name, conversion = base, candidate
    return _Hole(text, name, spec or None, conversion)


def _segments(template: str) -> Iterator[tuple[str, _Hole | None]]:
    """Split a template into ``(literal, hole)`` pairs; the last hole may be None."""
    literal: list[str] = []
    i = 0
    n = len(template)
    while i < n:
        ch = template[i]
        if ch in "{}" and template.startswith(ch * 2, i):
            literal.append(ch)
            i += 2
            continue
        if ch == "{":
            end = template.find("}", i + 1)
            nested = template.find("{", i + 1)
            if end != -1 and (nested == -1 or nested > end):
                yield "".join(literal), _parse_hole(template[i : end + 1])
                literal = []
                i = end + 1
                continue
        # Unmatched brace: literal text
        literal.append(ch)
        i += 1
    if literal:
        yield "".join(literal), None


def hole_names(template: str) -> list[str]:
    """Return the distinct hole names of a template in order of appearance."""
    names: list[str] = []
    position = 0
    for _, hole in _segments(template):
        if hole is None:
            continue
        name = hole.name or str(position)
        position += 1
        if name not in names:
            names.append(name)
    return names


def render(template: str, args: Sequence[Any] = ()) -> RenderedMessage:
    """Render ``template`` with positional ``args`` bound to its holes."""
    remaining = list(args)
    properties: dict[str, Any] = {}
    parts: list[str] = []
    position = 0

    for literal, hole in _segments(template):
        parts.append(literal)
        if hole is None:
            continue

        name = hole.name or str(position)
        position += 1

        if not remaining:
            parts.append(hole.text)
            continue

        value = remaining.pop(0)
        properties[name] = value
        parts.append(_format_value(value, hole.spec, hole.conversion))

    properties[TEMPLATE_PROPERTY] = template
    if remaining:
        properties[EXTRA_ARGS_PROPERTY] = tuple(remaining)
    return RenderedMessage("".join(parts), properties)


def _format_value(value: Any, spec: str | None, conversion: str | None) -> str:
    if conversion == "r":
        value = repr(value)
    elif conversion == "a":
        value = ascii(value)
    elif conversion == "s":
        value = str(value)

    if not spec:
        return str(value)
    try:
        return format(value, spec)
    except (TypeError, ValueError):
        return str(value)
