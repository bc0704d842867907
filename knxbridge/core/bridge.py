"""Bridge — the set of bridged devices on one KNX interface.

Owns the device registry, the GA → devices lookup, and the bus event
listener. Every device wired to a GA receives the telegram, the way
every device on a KNX line sees a GroupWrite.
"""

import logging

from knxbridge.bus.interface import KNXInterface
from knxbridge.devices.base import BaseDevice
from knxbridge.devices.thermostat import KNXThermostat

logger = logging.getLogger("knxbridge.bridge")

DEVICE_TYPES: dict[str, type[BaseDevice]] = {
    "thermostat": KNXThermostat,
}


def create_device(config: dict) -> BaseDevice:
    """Create a device from a configuration entry ({id, name, type, settings})."""
    device_type = config.get("type", "")
    cls = DEVICE_TYPES.get(device_type)
    if not cls:
        raise ValueError(f"Unknown device type: {device_type}")
    device_id = config.get("id")
    if not device_id:
        raise ValueError("Device config is missing 'id'")
    return cls(device_id, config.get("name") or device_id, config.get("settings") or {})


class Bridge:
    """Bridged devices sharing one KNX interface."""

    def __init__(self, interface: KNXInterface):
        self.interface = interface
        self.devices: dict[str, BaseDevice] = {}
        self._ga_map: dict[str, list[BaseDevice]] = {}
        self._running = False

    def add_device(self, device: BaseDevice) -> BaseDevice:
        """Register a device and bind it to the interface."""
        if device.device_id in self.devices:
            raise ValueError(f"Duplicate device id: {device.device_id}")
        device.knx_interface = self.interface
        self.devices[device.device_id] = device
        self._index_device(device)
        logger.info(
            "Device added: %s (%s) gas=%s",
            device.device_id,
            device.DEVICE_TYPE,
            ", ".join(device.group_addresses()) or "-",
        )
        return device

    def _index_device(self, device: BaseDevice) -> None:
        # Multiple devices can share the same GA
        for ga in device.group_addresses():
            devices = self._ga_map.setdefault(ga, [])
            if device not in devices:
                devices.append(device)

    def reindex(self) -> None:
        """Rebuild the GA lookup after device settings changed."""
        self._ga_map = {}
        for device in self.devices.values():
            self._index_device(device)

    def remove_device(self, device_id: str) -> bool:
        """Remove a device from the bridge."""
        device = self.devices.pop(device_id, None)
        if not device:
            return False
        for ga, devices in list(self._ga_map.items()):
            if device in devices:
                devices.remove(device)
            if not devices:
                del self._ga_map[ga]
        logger.info("Device removed: %s", device_id)
        return True

    def get_device(self, device_id: str) -> BaseDevice | None:
        return self.devices.get(device_id)

    def update_device_settings(self, device_id: str, updates: dict) -> BaseDevice | None:
        """Change a device's settings and re-route its group addresses.

        Raises ValueError for unknown keys and ValidationError (a ValueError)
        when the merged settings are invalid; the device then keeps its old
        settings.
        """
        device = self.devices.get(device_id)
        if not device:
            return None
        old = device.settings.model_dump()
        unknown = sorted(set(updates) - set(old))
        if unknown:
            raise ValueError(f"Unknown settings: {', '.join(unknown)}")
        new = {**old, **updates}
        changed = [key for key in updates if old.get(key) != new[key]]
        if not changed:
            return device
        device.on_settings(old, new, changed)
        self.reindex()
        return device

    def on_telegram(self, ga: str, payload: bytes) -> None:
        """Dispatch a telegram to every device wired to its GA."""
        devices = self._ga_map.get(ga)
        if not devices:
            logger.debug("No device for %s, ignoring", ga)
            return
        for device in devices:
            device.on_knx_event(ga, payload)

    async def on_connection(self, status: str) -> None:
        """Propagate the interface connection status to all devices."""
        logger.info("Interface status: %s", status)
        for device in list(self.devices.values()):
            await device.on_knx_connection(status)

    def start(self) -> None:
        """Subscribe to bus events."""
        if self._running:
            return
        self.interface.add_event_listener(self.on_telegram)
        self._running = True
        logger.info("Bridge started with %d device(s)", len(self.devices))

    def stop(self) -> None:
        if not self._running:
            return
        self.interface.remove_event_listener(self.on_telegram)
        self._running = False
        logger.info("Bridge stopped")

    @property
    def is_running(self) -> bool:
        return self._running

    def get_device_states(self) -> dict[str, dict]:
        """Get current capability values of all devices."""
        return {dev_id: dict(dev.capabilities) for dev_id, dev in self.devices.items()}
