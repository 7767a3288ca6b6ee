"""PumpAlert - tiered alerting for freshly launched pump.fun tokens."""

__version__ = "1.0.0"
