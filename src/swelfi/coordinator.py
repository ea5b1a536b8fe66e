"""Background refresh worker for network scans.

:class:`RefreshCoordinator` owns one background thread that runs
``iwlist`` scans strictly one at a time, in the order they were requested.
The foreground never blocks on it: requests go in through one queue and
results come back through another, which the foreground drains with
:meth:`RefreshCoordinator.poll` once per tick.

Every request gets a sequence number and every response carries it, so
the consumer can tell a stale response from a current one.  There is no
cancellation and no timeout: a request, once queued, runs to completion
or failure.
"""

from __future__ import annotations

import logging
import queue
import threading
import time
from dataclasses import dataclass
from typing import Union

from swelfi.scanning.iw import query_connected_ssid
from swelfi.scanning.iwlist import scan_networks
from swelfi.source import IwToolSource
from swelfi.wireless_common import ScanError, WirelessNetwork

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RefreshRequest:
    """Scan *interface*, optionally after sleeping *delay* seconds."""

    request_id: int
    interface: str
    delay: float | None = None


@dataclass(frozen=True)
class UpdatePending:
    """A scan for *interface* has started; results will follow."""

    request_id: int
    interface: str


@dataclass(frozen=True)
class NetworksUpdated:
    """A scan for *interface* completed."""

    request_id: int
    interface: str
    networks: list[WirelessNetwork]
    connected_ssid: str | None = None


Response = Union[UpdatePending, NetworksUpdated]

_STOP = object()


# ---------------------------------------------------------------------------
# Coordinator
# ---------------------------------------------------------------------------

class RefreshCoordinator:
    """Serializes scan requests through a single background worker.

    Call ``start()`` to launch the worker and ``stop()`` to shut it down
    once the queued requests have been processed.

    Args:
        source: Raw output source used for ``iwlist``/``iw`` (testing seam).
        sleep: Function used for the settle delay (testing seam).
    """

    def __init__(
        self,
        source: IwToolSource | None = None,
        *,
        sleep=time.sleep,
    ) -> None:
        self._source = source or IwToolSource()
        self._sleep = sleep
        self._requests: queue.Queue = queue.Queue()
        self._responses: queue.Queue = queue.Queue()
        self._id_lock = threading.Lock()
        self._next_id = 1
        self._thread: threading.Thread | None = None

    @property
    def next_request_id(self) -> int:
        """The id the next call to :meth:`request_refresh` will return."""
        with self._id_lock:
            return self._next_id

    def is_alive(self) -> bool:
        """Return True if the worker thread is running."""
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the background worker (no-op if already running)."""
        if self.is_alive():
            return
        self._thread = threading.Thread(
            target=self._worker_loop, name="swelfi-refresh", daemon=True,
        )
        self._thread.start()

    def stop(self, timeout: float | None = 5) -> None:
        """Let queued requests finish, then stop the worker thread."""
        if self._thread is None:
            return
        self._requests.put(_STOP)
        self._thread.join(timeout=timeout)
        if self._thread.is_alive():
            logger.warning("refresh worker still busy after %ss; leaving it", timeout)
            return
        self._thread = None

    def request_refresh(self, interface: str, delay: float | None = None) -> int:
        """Queue a scan of *interface* and return its request id.

        If *delay* is given, the worker sleeps that long before scanning.
        It postpones only this request; it does not merge duplicates.
        """
        with self._id_lock:
            request_id = self._next_id
            self._next_id += 1
        request = RefreshRequest(request_id=request_id, interface=interface, delay=delay)
        logger.debug("queued %s", request)
        self._requests.put(request)
        return request_id

    def poll(self) -> list[Response]:
        """Return all responses produced so far without blocking."""
        responses: list[Response] = []
        while True:
            try:
                responses.append(self._responses.get_nowait())
            except queue.Empty:
                return responses

    def process(self, request: RefreshRequest) -> None:
        """Handle one request synchronously, publishing its responses."""
        self._responses.put(UpdatePending(request.request_id, request.interface))

        if request.delay:
            logger.debug("request %d: settling %.2fs before scan", request.request_id, request.delay)
            self._sleep(request.delay)

        try:
            networks = scan_networks(request.interface, self._source)
        except ScanError as exc:
            logger.warning(
                "request %d: scan of %s failed: %s",
                request.request_id, request.interface, exc,
            )
            return

        self._responses.put(NetworksUpdated(
            request_id=request.request_id,
            interface=request.interface,
            networks=networks,
            connected_ssid=self._connected_ssid(request.interface),
        ))
        logger.debug(
            "request %d: %d network(s) on %s",
            request.request_id, len(networks), request.interface,
        )

    def _connected_ssid(self, interface: str) -> str | None:
        try:
            return query_connected_ssid(interface, self._source)
        except ScanError as exc:
            logger.debug("association lookup for %s failed: %s", interface, exc)
            return None

    def _worker_loop(self) -> None:
        """Process requests in arrival order (runs in background thread)."""
        while True:
            request = self._requests.get()
            if request is _STOP:
                return
            try:
                self.process(request)
            except Exception:
                logger.exception("request %d failed", request.request_id)
