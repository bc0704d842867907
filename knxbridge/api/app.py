"""FastAPI application factory for the KNX bridge API.

Creates the app with all routers mounted and the Bridge injected via
app.state.
"""

import logging

from fastapi import FastAPI

from .routes_devices import router as devices_router
from .routes_reference import router as reference_router

logger = logging.getLogger("knxbridge.api")


def create_app(bridge) -> FastAPI:
    """Create the FastAPI application with all routes.

    Args:
        bridge: Bridge instance (injected into app.state)
    """
    app = FastAPI(
        title="KNX Thermostat Bridge",
        description="Capability API for KNX thermostats",
        version="1.0.0",
    )

    app.state.bridge = bridge

    app.include_router(devices_router)
    app.include_router(reference_router)

    # Set app reference on routers (needed for app.state access)
    devices_router.app = app
    reference_router.app = app

    @app.get("/api/v1/health", tags=["system"])
    def health():
        """Health check — device count and how many are available."""
        available = sum(1 for d in bridge.devices.values() if d.available)
        return {
            "status": "ok",
            "devices": len(bridge.devices),
            "available": available,
        }

    logger.info("FastAPI app created with %d routers", 2)
    return app
