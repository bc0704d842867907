"""Device and capability routes.

The platform reads capability state here and writes capabilities, which
turns into GroupWrites on the bus through the device's listeners.
"""

from fastapi import APIRouter, HTTPException

from knxbridge.devices.base import CapabilityError

from .models import CapabilityWrite, DeviceResponse, SettingsUpdate

router = APIRouter(prefix="/api/v1/devices", tags=["devices"])


def _get_device(device_id: str):
    bridge = router.app.state.bridge
    device = bridge.get_device(device_id)
    if not device:
        raise HTTPException(status_code=404, detail="Device not found")
    return device


@router.get("", response_model=list[DeviceResponse])
def list_devices():
    """List all devices with live capability values."""
    bridge = router.app.state.bridge
    return [device.to_dict() for device in bridge.devices.values()]


@router.get("/{device_id}", response_model=DeviceResponse)
def get_device(device_id: str):
    """Get a single device with current capability values."""
    return _get_device(device_id).to_dict()


@router.put("/{device_id}/capabilities/{capability}", response_model=DeviceResponse)
async def set_capability(device_id: str, capability: str, body: CapabilityWrite):
    """Write a capability value (sent to the bus as a GroupWrite)."""
    device = _get_device(device_id)
    if not device.has_capability_listener(capability):
        raise HTTPException(status_code=404, detail="Capability not writable")
    try:
        await device.trigger_capability_listener(capability, body.value)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except CapabilityError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return device.to_dict()


@router.put("/{device_id}/settings", response_model=DeviceResponse)
def update_settings(device_id: str, body: SettingsUpdate):
    """Change device settings; group-address routing follows immediately."""
    _get_device(device_id)
    bridge = router.app.state.bridge
    try:
        device = bridge.update_device_settings(device_id, body.settings)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return device.to_dict()
