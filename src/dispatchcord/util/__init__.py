"""
Utility functions and helpers for Dispatchcord.

This package provides reusable utilities:

- **logger.py**: Centralized logging configuration with colored console output,
  rotating file handlers, and per-session log aggregation. Suppresses noise from
  Discord internals. Uses prompt_toolkit for non-blocking console I/O.

- **format_utils.py**: Text helpers for user-facing output: joining lines,
  filling ``{0}``-style message templates, humanizing durations and scrubbing
  text before it is echoed back into a channel.

- **async_utils.py**: Small helpers for calling handlers that may or may not be
  coroutine functions.
"""
