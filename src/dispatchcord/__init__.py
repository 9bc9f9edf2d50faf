"""
Dispatchcord - Message-Driven Command Dispatch for Discord Bots

Dispatchcord turns inbound chat messages into command invocations and
pattern-listener triggers, gating each one on prefix, run context, permission
tier, cooldown and argument schema before the handler ever runs.

Core Components:

- **Command Pipeline**: Resolves prefixes, commands and aliases, validates
  arguments and runs every eligibility gate before invoking a handler
- **Listener Engine**: Priority-ordered, categorized pattern listeners with
  per-user and per-guild cooldowns and temporary ignore windows
- **Cooldown Store**: Per-command, per-user expiring timestamps
- **Permission Tiers**: Ordered levels resolved from configurable predicates
- **Event Bus**: Named ``error``/``warn``/``command``/``listener``/``debug``
  events mirrored to the project logger

Usage:
    from dispatchcord.main import main
    main()  # Starts the py-cord bot with the built-in commands
"""
from __future__ import annotations

from importlib import metadata as importlib_metadata


try:
    __version__ = importlib_metadata.version("dispatchcord")
except importlib_metadata.PackageNotFoundError:  # pragma: no cover - running from source
    __version__ = "0.0.0"


def get_version() -> str:
    """Return the package version string."""
    return __version__


__all__ = ["get_version", "__version__"]
