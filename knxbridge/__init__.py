"""KNX thermostat bridge: DPT decoding and a capability API."""
