"""Parse the plotter's ``x1,y1,x2,y2`` coordinate replies.

Both parameter queries (``OP`` for the hard clip limits and ``OW`` for the
output window) answer with four comma-separated integers terminated by a
carriage return.  Checks run in a fixed order so the failure reported for
a given reply is always the same:

    1. empty / whitespace            -> MalformedResponse
    2. fewer than four fields        -> MalformedResponse
    3. non-integer field (first four) -> NumericFormatError
    4. inverted corners              -> InvalidGeometry
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from hpgl_features.errors import (
    MalformedResponse,
    NumericFormatError,
    ValidationError,
)
from hpgl_features.geometry.types import Rectangle

# ASCII digits only: no digit-group underscores, no other Unicode digits
_INTEGER = re.compile(r"[+-]?[0-9]+")


class ResponseKind(Enum):
    """Which query produced the reply (used in error messages)."""

    HARD_CLIP = "P1/P2"
    OUTPUT_WINDOW = "OW"


@dataclass(frozen=True, slots=True)
class ParseOutcome:
    """Tagged result of :func:`try_parse_rectangle`.

    Exactly one of ``rectangle`` / ``error`` is set.
    """

    rectangle: Rectangle | None = None
    error: ValidationError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def parse_rectangle(raw: str, kind: ResponseKind) -> Rectangle:
    """Turn a raw coordinate reply into a validated :class:`Rectangle`.

    Parameters
    ----------
    raw : str
        Reply text exactly as read from the instrument.
    kind : ResponseKind
        Query that produced *raw*.

    Raises
    ------
    MalformedResponse
        Empty reply or fewer than four fields.
    NumericFormatError
        One of the first four fields is not an integer.
    InvalidGeometry
        The corners are inverted or coincide.
    """
    if raw is None or not raw.strip():
        raise MalformedResponse(f"Empty {kind.value} response")

    fields = raw.split(",")
    if len(fields) < 4:
        raise MalformedResponse(
            f"Invalid {kind.value} response - expected 4 values, "
            f"got {len(fields)}: {raw!r}"
        )

    values = [f.strip() for f in fields[:4]]
    for value in values:
        if not _INTEGER.fullmatch(value):
            raise NumericFormatError(
                f"Invalid number {value!r} in {kind.value} response {raw!r}",
                raw,
            )
    x1, y1, x2, y2 = (int(v) for v in values)

    return Rectangle.from_values(x1, y1, x2, y2)


def try_parse_rectangle(raw: str, kind: ResponseKind) -> ParseOutcome:
    """Like :func:`parse_rectangle`, but return a tagged outcome."""
    try:
        return ParseOutcome(rectangle=parse_rectangle(raw, kind))
    except ValidationError as exc:
        return ParseOutcome(error=exc)
