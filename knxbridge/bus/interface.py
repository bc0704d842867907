"""KNX bus interface boundary.

The bridge never talks to the bus directly. Devices read and write group
addresses through a KNXInterface and receive telegrams as
``callback(ga, payload)`` events. Writes carry the value plus a DPT type
tag ("DPT9.1"); encoding to wire bytes is the interface's job.

LoopbackInterface is an in-process implementation: it delivers injected
telegrams to listeners, answers reads from the last telegram seen on a
GA, and records writes. It is what the runner uses when no bus transport
is attached, and what the tests drive.
"""

import logging
from collections.abc import Callable
from typing import Any

logger = logging.getLogger("knxbridge.bus")

EventCallback = Callable[[str, bytes], None]


class BusError(Exception):
    """A bus operation failed."""

    def __init__(self, ga: str, message: str = ""):
        self.ga = ga
        super().__init__(message or f"Bus operation failed for {ga}")


class BusReadError(BusError):
    """A GroupRead request could not be sent."""


class BusWriteError(BusError):
    """A GroupWrite was rejected by the transport."""


class KNXInterface:
    """Base class for bus interfaces."""

    def __init__(self):
        self._listeners: list[EventCallback] = []

    async def read_group_address(self, ga: str) -> None:
        """Request the current value of a GA. The answer arrives as an event."""
        raise NotImplementedError

    async def write_group_address(self, ga: str, value: Any, type_tag: str) -> None:
        """Write a value to a GA, encoded according to type_tag."""
        raise NotImplementedError

    def add_event_listener(self, callback: EventCallback) -> None:
        if callback not in self._listeners:
            self._listeners.append(callback)

    def remove_event_listener(self, callback: EventCallback) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def _emit(self, ga: str, payload: bytes) -> None:
        """Deliver a telegram to every listener."""
        for callback in list(self._listeners):
            callback(ga, payload)


class LoopbackInterface(KNXInterface):
    """In-memory interface without a transport."""

    def __init__(self):
        super().__init__()
        self.values: dict[str, bytes] = {}
        self.writes: list[tuple[str, Any, str]] = []
        self.reads: list[str] = []
        self.fail_reads: set[str] = set()
        self.fail_writes: set[str] = set()

    def inject(self, ga: str, payload: bytes) -> None:
        """Simulate a telegram arriving from the bus."""
        payload = bytes(payload)
        self.values[ga] = payload
        logger.debug("← %s payload=%s", ga, payload.hex())
        self._emit(ga, payload)

    async def read_group_address(self, ga: str) -> None:
        if ga in self.fail_reads:
            raise BusReadError(ga, f"Read failed for {ga}")
        self.reads.append(ga)
        payload = self.values.get(ga)
        if payload is None:
            logger.debug("read %s: no value on record", ga)
            return
        self._emit(ga, payload)

    async def write_group_address(self, ga: str, value: Any, type_tag: str) -> None:
        if ga in self.fail_writes:
            raise BusWriteError(ga, f"Write failed for {ga}")
        self.writes.append((ga, value, type_tag))
        logger.info("→ %s = %r (%s)", ga, value, type_tag)
