"""Pytest configuration and shared fixtures for KNX bridge tests."""

from __future__ import annotations

import os
import sys

import pytest

_TESTS_DIR = os.path.dirname(__file__)
_PROJECT_ROOT = os.path.abspath(os.path.join(_TESTS_DIR, "..", ".."))
if _PROJECT_ROOT not in sys.path:
    sys.path.insert(0, _PROJECT_ROOT)


THERMOSTAT_SETTINGS = {
    "mac_address": "00:11:22:33:44:55",
    "ga_temperature_target": "1/2/3",
    "ga_temperature_measure": "1/2/4",
    "ga_hvac_operating_mode": "1/2/5",
    "ga_heating_variable_correction": "1/2/6",
}


@pytest.fixture
def thermostat_settings():
    """Settings with all four thermostat group addresses wired."""
    return dict(THERMOSTAT_SETTINGS)


@pytest.fixture
def knx_interface():
    """Create a LoopbackInterface (no transport)."""
    from knxbridge.bus.interface import LoopbackInterface

    return LoopbackInterface()


@pytest.fixture
def thermostat(knx_interface, thermostat_settings):
    """Create a KNXThermostat bound to the loopback interface."""
    from knxbridge.devices.thermostat import KNXThermostat

    return KNXThermostat(
        "thermostat-1",
        "Test Thermostat",
        thermostat_settings,
        knx_interface=knx_interface,
    )


@pytest.fixture
def bridge(knx_interface, thermostat):
    """Create a started Bridge with one thermostat."""
    from knxbridge.core.bridge import Bridge

    bridge = Bridge(knx_interface)
    bridge.add_device(thermostat)
    bridge.start()
    yield bridge
    bridge.stop()


@pytest.fixture
def app(bridge):
    """Create a FastAPI test app with the bridge injected."""
    from knxbridge.api.app import create_app

    return create_app(bridge)


@pytest.fixture
async def client(app):
    """Create an AsyncClient for HTTP testing against the ASGI app."""
    try:
        import httpx
    except ModuleNotFoundError:
        pytest.skip("httpx not installed in venv; skipping API client tests")

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(
        transport=transport, base_url="http://testserver"
    ) as client:
        yield client


@pytest.fixture(autouse=True)
def _run_sync_endpoints_inline(monkeypatch):
    """Run sync FastAPI endpoints inline to avoid AnyIO threadpool hangs."""
    import fastapi.concurrency as fastapi_concurrency
    import fastapi.dependencies.utils as fastapi_dep_utils
    import fastapi.routing as fastapi_routing
    import starlette.concurrency as starlette_concurrency

    async def _run_inline(func, *args, **kwargs):
        return func(*args, **kwargs)

    monkeypatch.setattr(starlette_concurrency, "run_in_threadpool", _run_inline)
    monkeypatch.setattr(fastapi_concurrency, "run_in_threadpool", _run_inline)
    monkeypatch.setattr(fastapi_routing, "run_in_threadpool", _run_inline)
    monkeypatch.setattr(fastapi_dep_utils, "run_in_threadpool", _run_inline)
