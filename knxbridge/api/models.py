"""Pydantic models for the KNX bridge API."""

from typing import Any

from pydantic import BaseModel, Field

# ---------------------------------------------------------------------------
# Devices
# ---------------------------------------------------------------------------


class DeviceResponse(BaseModel):
    id: str
    name: str
    type: str
    available: bool = False
    capabilities: dict[str, Any] = Field(default_factory=dict)


class CapabilityWrite(BaseModel):
    value: Any = Field(..., description="New capability value (e.g. 21.5 or '1')")


class SettingsUpdate(BaseModel):
    settings: dict[str, Any] = Field(..., description="Settings to change (e.g. group addresses)")


# ---------------------------------------------------------------------------
# DPT reference
# ---------------------------------------------------------------------------


class DPTInfoResponse(BaseModel):
    id: str
    name: str
    unit: str = ""
    min: Any = None
    max: Any = None
    encoding_size: int = 1


class DecodeRequest(BaseModel):
    payload_hex: str = Field(..., description="Raw telegram payload as hex (e.g. '0ce2')")


class DecodeResponse(BaseModel):
    dpt: str
    value: Any = None
    unit: str = ""
