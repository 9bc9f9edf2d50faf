"""
Pattern listeners for Dispatchcord.

- **pattern_matcher.py**: Phrase matching with shared common expressions.
- **listener.py**: ``Listener`` definitions and the channel/guild ``IgnoreList``.
- **listener_runner.py**: Runs every listener category for a message concurrently.
"""
