"""Monidash error taxonomy.

Fetch-side failures never propagate as exceptions into the dashboard loop;
they are carried inside ``BuildUpdate.error`` instead.  Only
``FetcherConnectionError`` escapes to the caller, because it happens before
any update could be produced.
"""

from __future__ import annotations


class MonidashError(Exception):
    """Base class for all monidash errors."""


class FetcherConnectionError(MonidashError):
    """The initial connection to the build server failed.  Fatal."""


class NetworkError(MonidashError):
    """Reading a frame from an established connection failed."""


class ParseError(MonidashError):
    """A frame could not be parsed.  The read loop stops after this."""


class LayoutError(MonidashError):
    """The requested grid cannot be laid out."""


class InsufficientSpaceError(LayoutError):
    """The screen is too small to fit the grid."""


class LabelClipError(MonidashError):
    """A label cannot be shortened to the requested width."""


class ChannelClosed(MonidashError):
    """Sent on, or waited on, a channel that has been closed."""
