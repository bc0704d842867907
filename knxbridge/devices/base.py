"""Base class for bridged KNX devices.

Each device has:
  - Settings naming the group addresses it is wired to
  - A set of platform capabilities with their current values
  - An availability flag that follows the bus connection
  - Capability listeners that turn platform writes into bus writes
"""

import logging
from collections.abc import Awaitable, Callable
from typing import Any, Optional

from knxbridge.bus.interface import KNXInterface

from .settings import DeviceSettings

logger = logging.getLogger("knxbridge.devices")

CapabilityListener = Callable[[Any], Awaitable[Any]]


class CapabilityError(Exception):
    """A capability could not be read or written through the bus."""


class CapabilityReadError(CapabilityError):
    pass


class CapabilityWriteError(CapabilityError):
    pass


class BaseDevice:
    """Base class for all bridged devices."""

    DEVICE_TYPE = ""
    SETTINGS_MODEL: type[DeviceSettings] = DeviceSettings

    # Capabilities every instance exposes. Subclasses can override.
    CAPABILITIES: tuple[str, ...] = ()

    def __init__(
        self,
        device_id: str,
        name: str,
        settings: dict | DeviceSettings | None = None,
        knx_interface: Optional[KNXInterface] = None,
    ):
        self.device_id = device_id
        self.name = name
        self.settings = self._validate_settings(settings)
        self.knx_interface = knx_interface
        self.available = False
        self.unavailable_reason: Optional[str] = None

        self.capabilities: dict[str, Any] = {cap: None for cap in self.CAPABILITIES}
        self._listeners: dict[str, CapabilityListener] = {}

    def _validate_settings(self, settings) -> DeviceSettings:
        if isinstance(settings, self.SETTINGS_MODEL):
            return settings
        return self.SETTINGS_MODEL.model_validate(settings or {})

    def on_settings(self, old_settings: dict, new_settings: dict, changed_keys: list[str]) -> None:
        """Apply changed settings. Raises ValidationError and keeps the old ones if invalid."""
        self.settings = self._validate_settings(new_settings)

    # -- capabilities --------------------------------------------------------

    def has_capability(self, capability: str) -> bool:
        return capability in self.capabilities

    def add_capability(self, capability: str) -> None:
        if capability not in self.capabilities:
            self.capabilities[capability] = None
            logger.info("%s + capability %s", self.device_id, capability)

    def remove_capability(self, capability: str) -> None:
        if capability in self.capabilities:
            del self.capabilities[capability]
            logger.info("%s - capability %s", self.device_id, capability)

    def set_capability_value(self, capability: str, value: Any) -> None:
        """Store a decoded bus value in capability state."""
        if capability not in self.capabilities:
            logger.warning(
                "%s has no capability %s, dropping value %r", self.device_id, capability, value
            )
            return
        self.capabilities[capability] = value
        logger.info("%s ← %s = %r", self.device_id, capability, value)

    def get_capability_value(self, capability: str) -> Any:
        return self.capabilities.get(capability)

    def register_capability_listener(
        self, capability: str, listener: CapabilityListener
    ) -> None:
        self._listeners[capability] = listener

    def has_capability_listener(self, capability: str) -> bool:
        return capability in self._listeners and capability in self.capabilities

    async def trigger_capability_listener(self, capability: str, value: Any) -> Any:
        """Run the listener for a platform-side capability write.

        A listener may return the value in its normalised form (e.g. a float
        for a temperature sent as a string); that form is what gets stored.
        """
        listener = self._listeners.get(capability)
        if listener is None or capability not in self.capabilities:
            raise KeyError(capability)
        result = await listener(value)
        if result is not None:
            value = result
        self.capabilities[capability] = value
        return value

    # -- availability --------------------------------------------------------

    def set_available(self) -> None:
        self.available = True
        self.unavailable_reason = None

    def set_unavailable(self, reason: str) -> None:
        self.available = False
        self.unavailable_reason = reason
        logger.warning("%s unavailable: %s", self.device_id, reason)

    # -- group addresses -----------------------------------------------------

    def group_addresses(self) -> list[str]:
        """Configured (non-empty) group addresses, in settings order."""
        gas = []
        for key, value in self.settings.model_dump().items():
            if key.startswith("ga_") and value and value not in gas:
                gas.append(value)
        return gas

    def handles_ga(self, ga: str) -> bool:
        """Check if this device handles the given group address."""
        return ga in self.group_addresses()

    # -- bus callbacks -------------------------------------------------------

    def on_knx_event(self, ga: str, payload: bytes) -> None:
        """Handle a telegram for one of this device's group addresses.

        Subclasses override this to decode the DPT and update capabilities.
        """
        raise NotImplementedError

    async def on_knx_connection(self, status: str) -> None:
        """Follow the interface connection status."""
        if status == "connected":
            self.set_available()
        else:
            self.set_unavailable("Interface not available")

    def to_dict(self) -> dict:
        return {
            "id": self.device_id,
            "name": self.name,
            "type": self.DEVICE_TYPE,
            "available": self.available,
            "capabilities": dict(self.capabilities),
        }
