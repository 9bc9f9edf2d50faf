"""
Configuration management for Dispatchcord.

- **app_configuration.py**: YAML configuration loader for global settings
  (bot name, default prefix, owner/admin/support ids, per-guild prefixes,
  feedback timing). Falls back gracefully on missing or malformed config files.

- **messages.py**: Default user-facing feedback templates, overridable from the
  ``messages`` section of the config file.
"""
