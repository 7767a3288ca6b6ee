"""PumpAlert configuration.

Settings are read from the environment (and ``.env``) only when
``get_settings()`` is first called, so importing this package never fails
on a missing webhook URL or API key.
"""

from pumpalert.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
