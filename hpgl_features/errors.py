"""Error taxonomy for the features plot.

Every error carries an explicit :class:`ErrorKind` tag so callers can
branch on ``exc.kind`` instead of on the class hierarchy.  Two subtrees:

ValidationError
    Raised synchronously by the pure core (parser, geometry, pattern
    generators).  Never retried.
TransportFailure
    Surfaced from the GPIB session.  The core never raises these.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(Enum):
    """Tag carried by every :class:`FeaturesError`."""

    MALFORMED_RESPONSE = "malformed_response"
    NUMERIC_FORMAT = "numeric_format"
    INVALID_GEOMETRY = "invalid_geometry"
    INVALID_PASS = "invalid_pass"
    TRANSPORT = "transport"


class FeaturesError(Exception):
    """Base exception for all features-plot errors."""

    kind: ErrorKind


# ---------------------------------------------------------------------------
# Validation (core)
# ---------------------------------------------------------------------------


class ValidationError(FeaturesError):
    """A pure validation failure raised by the core."""

    pass


class MalformedResponse(ValidationError):
    """Device reply is empty or has fewer than four fields."""

    kind = ErrorKind.MALFORMED_RESPONSE


class NumericFormatError(ValidationError):
    """A reply field is not an integer.

    Parameters
    ----------
    message : str
        Human-readable description.
    raw : str
        The complete offending reply, as received.
    """

    kind = ErrorKind.NUMERIC_FORMAT

    def __init__(self, message: str, raw: str) -> None:
        super().__init__(message)
        self.raw = raw


class InvalidGeometry(ValidationError):
    """A rectangle violates ``lower_left < upper_right`` on either axis."""

    kind = ErrorKind.INVALID_GEOMETRY


class InvalidPass(ValidationError):
    """A repeatability pattern was asked for a non-positive pass number."""

    kind = ErrorKind.INVALID_PASS

    def __init__(self, pass_number: int) -> None:
        super().__init__(f"pass number must be >= 1, got {pass_number}")
        self.pass_number = pass_number


# ---------------------------------------------------------------------------
# Transport (external collaborator)
# ---------------------------------------------------------------------------


class TransportFailure(FeaturesError):
    """GPIB/VISA-level failure (open, write, read or clear)."""

    kind = ErrorKind.TRANSPORT


class TransportTimeout(TransportFailure):
    """The instrument did not answer within the session timeout."""

    pass
