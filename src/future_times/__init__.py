"""Future Times: signal-to-edition news pipeline."""

__version__ = "0.1.0"
