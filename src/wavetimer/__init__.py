"""wavetimer: hands-free interval timer driven by a proximity sensor."""

__version__ = "0.3.0"
