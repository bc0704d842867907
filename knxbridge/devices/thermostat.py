"""KNX room thermostat exposed as platform capabilities.

Group addresses (from settings):
  ga_temperature_target          — setpoint, read/write (DPT 9.001)
  ga_temperature_measure         — measured room temperature (DPT 9.001)
  ga_hvac_operating_mode         — HVAC mode, read/write (DPT 20.102)
  ga_heating_variable_correction — heating correction 0-1 (DPT 5.001), optional

Telegrams on these addresses are decoded and written into capability
state. Platform writes to target_temperature and hvac_operating_mode go
out as GroupWrites tagged with the DPT; the interface encodes them.

The heating_variable_correction capability only exists while its group
address is configured.
"""

import logging
import math

from knxbridge.bus.interface import BusError
from knxbridge.dpt.codec import decode_float16, decode_mode, decode_unsigned_scaled
from knxbridge.dpt.tags import format_type_tag

from .base import BaseDevice, CapabilityReadError, CapabilityWriteError
from .settings import ThermostatSettings

logger = logging.getLogger("knxbridge.devices")

# HVAC modes (DPT 20.102)
HVAC_MODES = {
    0: "Auto",
    1: "Comfort",
    2: "Standby",
    3: "Economy",
    4: "Building Protection",
}

TARGET_TEMPERATURE_TAG = format_type_tag("9.001")  # "DPT9.1"
HVAC_MODE_TAG = format_type_tag("20.102")


class KNXThermostat(BaseDevice):
    """Room thermostat bridged from KNX group addresses."""

    DEVICE_TYPE = "thermostat"
    SETTINGS_MODEL = ThermostatSettings
    CAPABILITIES = ("target_temperature", "measure_temperature", "hvac_operating_mode")

    CORRECTION_CAPABILITY = "heating_variable_correction"

    def __init__(self, device_id: str, name: str, settings=None, knx_interface=None):
        super().__init__(device_id, name, settings, knx_interface)
        self.sync_capabilities()
        self.register_capability_listener(
            "target_temperature", self.on_capability_target_temperature
        )
        self.register_capability_listener(
            "hvac_operating_mode", self.on_capability_hvac_operating_mode
        )

    def sync_capabilities(self) -> None:
        """Add or remove the optional correction capability to match settings."""
        if self.settings.ga_heating_variable_correction:
            if not self.has_capability(self.CORRECTION_CAPABILITY):
                self.add_capability(self.CORRECTION_CAPABILITY)
        elif self.has_capability(self.CORRECTION_CAPABILITY):
            self.remove_capability(self.CORRECTION_CAPABILITY)

    def on_settings(self, old_settings: dict, new_settings: dict, changed_keys: list[str]) -> None:
        """Apply changed settings from the platform."""
        super().on_settings(old_settings, new_settings, changed_keys)
        logger.info("%s settings changed: %s", self.device_id, ", ".join(changed_keys))
        self.sync_capabilities()

    # -- bus → capabilities --------------------------------------------------

    def on_knx_event(self, ga: str, payload: bytes) -> None:
        """Decode a telegram into every capability wired to the GA."""
        s = self.settings

        if ga == s.ga_temperature_target:
            self._set_temperature("target_temperature", payload)
        if ga == s.ga_temperature_measure:
            self._set_temperature("measure_temperature", payload)
        if ga == s.ga_heating_variable_correction:
            self.set_capability_value(
                self.CORRECTION_CAPABILITY, decode_unsigned_scaled(payload)
            )
        if ga == s.ga_hvac_operating_mode:
            self.set_capability_value("hvac_operating_mode", str(decode_mode(payload)))

    def _set_temperature(self, capability: str, payload: bytes) -> None:
        value = decode_float16(payload)
        if value is None:
            logger.warning(
                "%s: short DPT 9 payload %r for %s, keeping last value",
                self.device_id,
                bytes(payload or b"").hex(),
                capability,
            )
            return
        self.set_capability_value(capability, value)

    async def on_knx_connection(self, status: str) -> None:
        """Become available and refresh all values once the interface connects."""
        await super().on_knx_connection(status)
        if status != "connected":
            return
        for ga in self.group_addresses():
            try:
                await self.knx_interface.read_group_address(ga)
            except BusError as exc:
                logger.warning("%s: read of %s failed: %s", self.device_id, ga, exc)

    # -- capabilities → bus --------------------------------------------------

    async def on_capability_target_temperature(self, value) -> float:
        try:
            temperature = float(value)
        except (TypeError, ValueError):
            raise ValueError(f"Invalid target temperature: {value!r}") from None
        if not math.isfinite(temperature):
            raise ValueError(f"Invalid target temperature: {value!r}")

        ga = self.settings.ga_temperature_target
        try:
            await self.knx_interface.write_group_address(ga, temperature, TARGET_TEMPERATURE_TAG)
        except BusError as exc:
            logger.error("%s: writing target temperature failed: %s", self.device_id, exc)
            raise CapabilityWriteError("Failed to set target temperature") from exc
        return temperature

    async def on_capability_hvac_operating_mode(self, value) -> str:
        try:
            mode = int(value)
        except (TypeError, ValueError):
            raise ValueError(f"Invalid HVAC mode: {value!r}") from None
        if mode not in HVAC_MODES:
            raise ValueError(f"Invalid HVAC mode: {value!r}")

        ga = self.settings.ga_hvac_operating_mode
        try:
            await self.knx_interface.write_group_address(ga, mode, HVAC_MODE_TAG)
        except BusError as exc:
            logger.error("%s: writing HVAC mode failed: %s", self.device_id, exc)
            raise CapabilityWriteError("Failed to set HVAC operating mode") from exc
        return str(mode)

    # -- getters -------------------------------------------------------------

    async def get_target_temperature(self) -> None:
        await self._read("ga_temperature_target", "Failed to get target temperature")

    async def get_measure_temperature(self) -> None:
        await self._read("ga_temperature_measure", "Failed to get measured temperature")

    async def get_hvac_operating_mode(self) -> None:
        await self._read("ga_hvac_operating_mode", "Failed to get HVAC operating mode")

    async def get_heating_variable_correcting(self) -> None:
        await self._read(
            "ga_heating_variable_correction", "Failed to get heating variable correction"
        )

    async def _read(self, setting: str, message: str) -> None:
        """Send a GroupRead; the answer arrives through on_knx_event."""
        ga = getattr(self.settings, setting)
        if not ga:
            return
        try:
            await self.knx_interface.read_group_address(ga)
        except BusError as exc:
            logger.error("%s: %s", self.device_id, exc)
            raise CapabilityReadError(message) from exc
