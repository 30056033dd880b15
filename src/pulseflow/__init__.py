"""PulseFlow: monitor web sources, detect changes, deliver alerts."""

__version__ = "0.1.0"
