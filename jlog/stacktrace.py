"""Turns the traceback of an exception into a list of frame records."""

from __future__ import annotations

import os
import traceback
from typing import Any

STACK_SOURCE_FILE_NAME = "source"
STACK_SOURCE_LINE_NAME = "line"
STACK_SOURCE_FUNCTION_NAME = "func"


def _next_in_chain(error: BaseException) -> BaseException | None:
    if error.__cause__ is not None:
        return error.__cause__
    if not error.__suppress_context__:
        return error.__context__
    return None


def marshal_stack(error: Any) -> list[dict[str, str]] | None:
    """Return the frames of the first exception in the chain with a traceback.

    Frames come innermost first; each holds the source file's base name, the
    line number as text and the function name. Returns None when no
    exception in the chain carries a traceback.
    """
    seen: set[int] = set()
    current = error if isinstance(error, BaseException) else None
    while current is not None and current.__traceback__ is None:
        seen.add(id(current))
        current = _next_in_chain(current)
        if current is not None and id(current) in seen:
            return None
    if current is None:
        return None
    frames = reversed(traceback.extract_tb(current.__traceback__))
    result = []
    for frame in frames:
        fields = {
            STACK_SOURCE_FILE_NAME: os.path.basename(frame.filename),
            STACK_SOURCE_LINE_NAME: str(frame.lineno),
            STACK_SOURCE_FUNCTION_NAME: frame.name,
        }
        result.append({key: fields[key] for key in sorted(fields)})
    return result