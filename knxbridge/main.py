"""KNX Thermostat Bridge — Main Entry Point.

Loads device configuration from config.yaml, creates the bridged devices,
binds them to the KNX interface, and serves the capability API on port
9090.

No bus transport ships with the bridge: devices are bound to a
LoopbackInterface, which records writes and answers reads from the last
telegram injected on each group address.
"""

import asyncio
import logging
import os

import yaml

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


def load_config(path: str) -> dict:
    """Load config.yaml. An empty file yields an empty config."""
    with open(path) as f:
        config = yaml.safe_load(f) or {}
    if not isinstance(config, dict):
        raise ValueError(f"{path}: top level must be a mapping")
    config.setdefault("interface", {})
    config.setdefault("devices", [])
    return config


def build_bridge(config: dict, interface=None):
    """Create a Bridge with every configured device registered."""
    from knxbridge.bus.interface import LoopbackInterface
    from knxbridge.core.bridge import Bridge, create_device

    bridge = Bridge(interface or LoopbackInterface())
    mac_address = (config.get("interface") or {}).get("mac_address", "")
    for entry in config.get("devices") or []:
        entry = dict(entry)
        settings = dict(entry.get("settings") or {})
        settings.setdefault("mac_address", mac_address)
        entry["settings"] = settings
        bridge.add_device(create_device(entry))
    return bridge


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------


def main():
    logging.basicConfig(
        level=os.environ.get("KNXBRIDGE_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s [%(name)s] %(levelname)s %(message)s",
        datefmt="%H:%M:%S",
    )
    logger = logging.getLogger("knxbridge")

    # Late imports so the logging config applies to module loggers
    from knxbridge.api.app import create_app

    config_path = os.environ.get("KNXBRIDGE_CONFIG", "/app/config.yaml")
    if not os.path.exists(config_path):
        config_path = os.path.join(os.path.dirname(__file__), "config.yaml")

    logger.info("Loading config from %s", config_path)
    config = load_config(config_path)

    bridge = build_bridge(config)
    logger.info("Bridge ready: %d device(s)", len(bridge.devices))

    app = create_app(bridge)
    api_port = int(os.environ.get("KNXBRIDGE_API_PORT", "9090"))

    try:
        asyncio.run(_serve(app, bridge, api_port, logger))
    except KeyboardInterrupt:
        logger.info("Interrupted")
    logger.info("Shutdown complete")


async def _serve(app, bridge, port: int, logger):
    """Connect the devices and run uvicorn until it exits."""
    import uvicorn

    bridge.start()
    await bridge.on_connection("connected")

    config = uvicorn.Config(
        app=app,
        host="0.0.0.0",
        port=port,
        log_level="info",
        access_log=False,
    )
    server = uvicorn.Server(config)
    logger.info("Capability API: http://0.0.0.0:%d", port)
    logger.info("Health: http://0.0.0.0:%d/api/v1/health", port)
    try:
        await server.serve()
    finally:
        await bridge.on_connection("disconnected")
        bridge.stop()


if __name__ == "__main__":
    main()
