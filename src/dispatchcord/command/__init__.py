"""
Text command handling for Dispatchcord.

- **command_resolver.py**: Prefix resolution, tokenization, the command registry
  and context building.
- **argument_parser.py**: Positional and CLI-style argument validation backed by
  pydantic.
- **cooldown_store.py**: Per-user command cooldowns with timed eviction.
- **conditions.py**: The individual gates a command invocation must pass.
- **command_runner.py**: The sequential dispatch pipeline.
- **default_commands.py**: Built-in ``ping``, ``info`` and ``repeat`` commands.
"""
