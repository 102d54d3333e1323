"""Real-time exercise intensity and safety-alert engine for wearable sensor streams."""

__version__ = "0.1.0"
