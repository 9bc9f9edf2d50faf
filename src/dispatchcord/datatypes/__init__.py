"""
Shared data types for Dispatchcord.

- **discord_datatypes.py**: Snowflake id wrappers (``UserID``, ``GuildID``,
  ``ChannelID``).
- **message_datatypes.py**: The platform-neutral ``IncomingMessage`` protocol.
- **command_datatypes.py**: ``Command``, its argument schema and the
  per-invocation ``CommandContext``.
"""
