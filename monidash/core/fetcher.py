"""Build fetcher — streams build snapshots from the build server over TCP.

The server sends one JSON object per line::

    {"failing": [...], "acknowledged": [...], "healthy": [...]}

Each array holds ``{"name", "building", "user"}`` objects.  Every line read
becomes exactly one ``BuildUpdate`` on the fetcher's ``updates`` channel:

- read failure  -> ``BuildUpdate(error=NetworkError)``, keep reading
- parse failure -> ``BuildUpdate(error=ParseError)``, stop reading for good
- success       -> ``BuildUpdate(builds=<sorted>)``

There is no read timeout and no reconnection.  A stalled server leaves the
read loop blocked; a broken socket yields a ``NetworkError`` per iteration.
"""

from __future__ import annotations

import logging
import socket
import threading
from collections.abc import Callable
from typing import Any, TextIO

from pydantic import ValidationError

from monidash.core.channel import Channel
from monidash.errors import (
    ChannelClosed,
    FetcherConnectionError,
    NetworkError,
    ParseError,
)
from monidash.models.builds import Build, BuildCollection, BuildUpdate

logger = logging.getLogger(__name__)

Connector = Callable[[tuple[str, int]], socket.socket]


# ---------------------------------------------------------------------------
# Frame handling (pure)
# ---------------------------------------------------------------------------


def sort_builds(builds: list[Build]) -> list[Build]:
    """Order builds by the character length of their name, shortest first.

    The sort is stable: names of equal length keep their failing,
    acknowledged, healthy order.
    """
    return sorted(builds, key=lambda build: len(build.name))


def parse_frame(line: str) -> list[Build]:
    """Parse one frame into a sorted build list.

    Raises
    ------
    ParseError
        If *line* is not a JSON object of the expected shape.
    """
    try:
        collection = BuildCollection.model_validate_json(line)
    except ValidationError as exc:
        raise ParseError(f"Cannot Parse JSON: {exc}") from exc

    builds = [
        Build(
            name=wire.name,
            state=state,
            building=wire.building,
            acknowledger=wire.user,
        )
        for wire, state in collection.tagged()
    ]
    return sort_builds(builds)


# ---------------------------------------------------------------------------
# Fetcher
# ---------------------------------------------------------------------------


class BuildFetcher:
    """Owns the TCP connection and publishes ``BuildUpdate``\\ s.

    Parameters
    ----------
    address:
        ``(host, port)`` of the build server.
    retry_delay:
        Seconds to pause after a network error before reading again.
        ``0`` retries immediately.
    connect:
        Factory returning a connected socket; defaults to
        ``socket.create_connection``.
    updates:
        Channel to publish on.  Defaults to a new rendezvous channel, so
        the read loop blocks until each update has been received.
    """

    def __init__(
        self,
        address: tuple[str, int],
        *,
        retry_delay: float = 0.0,
        connect: Connector = socket.create_connection,
        updates: Channel[BuildUpdate] | None = None,
    ) -> None:
        self._address = address
        self._retry_delay = retry_delay
        self._connect = connect
        self._updates: Channel[BuildUpdate] = (
            updates if updates is not None else Channel(name="builds")
        )
        self._sock: socket.socket | None = None
        self._reader: TextIO | None = None
        self._thread: threading.Thread | None = None
        self._last_update: BuildUpdate | None = None
        self._stop = threading.Event()

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def address(self) -> tuple[str, int]:
        return self._address

    @property
    def updates(self) -> Channel[BuildUpdate]:
        """Single-consumer channel of build updates."""
        return self._updates

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Connect to the server and start the background read loop.

        Raises
        ------
        FetcherConnectionError
            If the connection cannot be established.  No update is ever
            published in that case.
        """
        host, port = self._address
        try:
            self._sock = self._connect(self._address)
        except OSError as exc:
            logger.error("BuildFetcher: cannot connect to %s:%d (%s)", host, port, exc)
            raise FetcherConnectionError(
                f"Error connecting to {host}:{port}: {exc}"
            ) from exc

        logger.info("BuildFetcher: connected to %s:%d", host, port)
        self.attach(self._sock.makefile("r", encoding="utf-8", newline="\n"))
        self._thread = threading.Thread(
            target=self.read_loop, name="monidash-fetcher", daemon=True
        )
        self._thread.start()

    def attach(self, reader: TextIO) -> None:
        """Read frames from *reader* instead of a socket of our own."""
        self._reader = reader

    def close(self) -> None:
        """Ask the read loop to stop and release the connection.

        Closes the ``updates`` channel, so a blocked publish returns and any
        consumer sees the source as finished.
        """
        self._stop.set()
        self._updates.close()
        if self._sock is not None:
            try:
                self._sock.shutdown(socket.SHUT_RDWR)
            except OSError:
                logger.debug("BuildFetcher: socket already disconnected")
            self._sock.close()
        logger.info("BuildFetcher: closed")

    def __enter__(self) -> BuildFetcher:
        self.start()
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Read loop
    # ------------------------------------------------------------------

    def process_frame(self) -> bool:
        """Read, parse and publish one frame.

        Returns
        -------
        bool
            ``False`` once the loop must stop (after a parse failure),
            ``True`` otherwise.

        Raises
        ------
        ChannelClosed
            If the ``updates`` channel is closed while publishing.
        """
        if self._reader is None:
            raise RuntimeError("BuildFetcher has no connection; call start() first")

        try:
            line = self._reader.readline()
        except (OSError, ValueError) as exc:
            # ValueError covers UnicodeDecodeError and reads on a closed file.
            logger.warning("BuildFetcher: read failed: %s", exc)
            self._publish(BuildUpdate.failure(NetworkError("Network Error")))
            return True

        if not line.endswith("\n"):
            logger.warning("BuildFetcher: connection closed by server")
            self._publish(BuildUpdate.failure(NetworkError("Network Error")))
            return True

        try:
            builds = parse_frame(line)
        except ParseError as exc:
            logger.error("BuildFetcher: %s; no further frames will be read", exc)
            self._publish(BuildUpdate.failure(exc))
            return False

        logger.debug("BuildFetcher: frame with %d builds", len(builds))
        self._publish(BuildUpdate(builds=tuple(builds)))
        return True

    def _publish(self, update: BuildUpdate) -> None:
        self._last_update = update
        self._updates.send(update)

    def _last_failed(self) -> bool:
        return self._last_update is not None and not self._last_update.ok

    def read_loop(self) -> None:
        """Process frames until a parse failure or ``close()``."""
        try:
            while not self._stop.is_set():
                if not self.process_frame():
                    return
                if self._retry_delay and self._last_failed():
                    self._stop.wait(self._retry_delay)
        except ChannelClosed:
            logger.debug("BuildFetcher: update channel closed, read loop exiting")
