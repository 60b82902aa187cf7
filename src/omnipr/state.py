"""Shared state module for the OmniPR tool surface.

Holds the configuration loaded once at import time.  Tool modules import
CONFIG from here instead of loading their own copy.  Provider sessions are
not shared: every tool call sets up its own and closes it afterwards.
"""

from __future__ import annotations

from .config import Config

CONFIG: Config = Config.load_from_env()
