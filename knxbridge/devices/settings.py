"""Pydantic models for per-device settings.

Group address settings are strings in "main/middle/sub" form. An empty
string means the function is not wired on the bus.
"""

from pydantic import BaseModel, Field, field_validator

from knxbridge.bus.addresses import is_group_address


class DeviceSettings(BaseModel):
    """Settings shared by every bridged device."""

    mac_address: str = Field(default="", description="KNX interface identifier")


class ThermostatSettings(DeviceSettings):
    """Group addresses of a room thermostat."""

    ga_temperature_target: str = Field(default="", description="Setpoint (DPT 9.001)")
    ga_temperature_measure: str = Field(default="", description="Room temperature (DPT 9.001)")
    ga_hvac_operating_mode: str = Field(default="", description="HVAC mode (DPT 20.102)")
    ga_heating_variable_correction: str = Field(
        default="", description="Heating correction (DPT 5.001)"
    )

    @field_validator(
        "ga_temperature_target",
        "ga_temperature_measure",
        "ga_hvac_operating_mode",
        "ga_heating_variable_correction",
    )
    @classmethod
    def _check_group_address(cls, value: str) -> str:
        value = value.strip()
        if value and not is_group_address(value):
            raise ValueError(f"not a group address: {value!r}")
        return value
