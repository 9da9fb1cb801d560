# batwiki/cli/__init__.py
from __future__ import annotations
from batwiki.cli.generic import app

# Expose the main app only
__all__ = ["app"]
