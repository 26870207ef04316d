"""
Logging context scopes using contextvars.

A scope is a key/value overlay that is visible to every log record emitted
while it is open. Scopes nest: opening a scope pushes a frame, and the merged
context is the union of all open frames, later frames shadowing earlier keys.

Unlike ``ContextVar.reset`` tokens, a ``ScopeHandle`` removes only its own
frame when released. Handles can therefore be released in any order without
resurrecting or dropping a sibling's keys, and releasing twice is a no-op.

Design choice: contextvars
- Thread-safe and asyncio-compatible
- Each thread / task sees only the scopes it opened itself
- Clean integration with structlog processors

Usage:
    scope = begin_scope({"OperationId": "abc-123"})
    try:
        log.info("Processing")  # includes OperationId
    finally:
        scope.release()

    with begin_scope(tenant="acme"):
        log.info("Scoped")
"""

from __future__ import annotations

import itertools
from collections.abc import Iterable, Mapping
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, Protocol

_frame_ids = itertools.count(1)


@dataclass(frozen=True)
class _ScopeFrame:
    values: Mapping[str, Any]
    frame_id: int = field(default_factory=lambda: next(_frame_ids))


_scope_frames: ContextVar[tuple[_ScopeFrame, ...]] = ContextVar("logtimings_scopes", default=())


class Releasable(Protocol):
    """Anything a logger hands back from ``begin_scope``."""

    def release(self) -> None: ...


class ScopeHandle:
    """Handle for one open scope frame."""

    __slots__ = ("_frame", "_released")

    def __init__(self, frame: _ScopeFrame):
        self._frame = frame
        self._released = False

    @property
    def values(self) -> dict[str, Any]:
        return dict(self._frame.values)

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        """Remove this scope's frame from the current context. Idempotent."""
        if self._released:
            return
        self._released = True

        frames = _scope_frames.get()
        remaining = tuple(f for f in frames if f.frame_id != self._frame.frame_id)
        if len(remaining) != len(frames):
            _scope_frames.set(remaining)

    def __enter__(self) -> ScopeHandle:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.release()

    def __repr__(self) -> str:
        state = "released" if self._released else "open"
        return f"ScopeHandle({dict(self._frame.values)!r}, {state})"


class NullScope:
    """Scope handle that was never opened."""

    __slots__ = ()

    def release(self) -> None:
        pass

    def __enter__(self) -> NullScope:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        pass


NULL_SCOPE = NullScope()


def scope_values(*sources: Any, **kwargs: Any) -> dict[str, Any]:
    """
    Normalise scope input into a plain dict.

    Accepts any mix of mappings, ``(key, value)`` tuples and iterables of
    such tuples, plus keyword properties. A bare ``("Name", value)`` call
    (two positional arguments, the first a string) is read as one pair.
    """
    if len(sources) == 2 and isinstance(sources[0], str):
        sources = ((sources[0], sources[1]),)

    values: dict[str, Any] = {}
    for source in sources:
        if source is None:
            continue
        if isinstance(source, Mapping):
            values.update(source)
        elif isinstance(source, tuple) and len(source) == 2 and isinstance(source[0], str):
            values[source[0]] = source[1]
        elif isinstance(source, Iterable) and not isinstance(source, (str, bytes)):
            for key, value in source:
                values[key] = value
        else:
            raise TypeError(f"Cannot build scope values from {type(source).__name__}")
    values.update(kwargs)
    return values


def begin_scope(*sources: Any, **kwargs: Any) -> ScopeHandle:
    """Open a scope carrying the given values and return its handle."""
    frame = _ScopeFrame(values=scope_values(*sources, **kwargs))
    _scope_frames.set((*_scope_frames.get(), frame))
    return ScopeHandle(frame)


def get_scope_context() -> dict[str, Any]:
    """Merge all open scopes, later scopes shadowing earlier keys."""
    merged: dict[str, Any] = {}
    for frame in _scope_frames.get():
        merged.update(frame.values)
    return merged


def open_scope_count() -> int:
    """Number of scope frames open in the current context."""
    return len(_scope_frames.get())


def clear_scopes() -> None:
    """Drop every open scope in the current context."""
    _scope_frames.set(())


def add_scope_processor(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """
    Structlog processor that adds open scope values to every log entry.

    Keys already present on the event are left alone.
    """
    for key, value in get_scope_context().items():
        if key not in event_dict:
            event_dict[key] = value
    return event_dict
