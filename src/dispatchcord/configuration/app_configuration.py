from __future__ import annotations
from pathlib import Path
import fcntl
from typing import Any, Dict, List, Mapping, Optional
import yaml

from dispatchcord.configuration.messages import DEFAULT_MESSAGES
from dispatchcord.util.logger import get_logger

logger = get_logger("app_configuration")


CONFIG_PATH = Path(__file__).resolve().parents[3] / "config" / "app_config.yml"

DEFAULT_NAME = "Bot"
DEFAULT_PREFIX = "!"
DEFAULT_FEEDBACK_DELETE_SECONDS = 5.0


def _id_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple, set)):
        return [str(item) for item in value if item is not None and str(item).strip()]
    return [str(value)]


class AppConfig:
    """File-lock based accessor around the YAML-based application configuration.

    The class caches contents of ``config/app_config.yml`` and exposes
    dictionary-like access helpers plus typed shortcuts for the keys the
    dispatch core reads. Uses fcntl file locks for safe concurrent access
    across processes.
    """

    def __init__(self, config_path: Optional[Path] = None) -> None:
        self.config_path = config_path
        self._data: Dict[str, Any] = {}
        self.reload()

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "AppConfig":
        """Build a configuration that is not backed by a file."""
        config = cls(None)
        config._data = dict(data)
        return config

    # --------------------------
    # Private helpers
    # --------------------------
    def load_from_disk(self) -> Dict[str, Any]:
        if self.config_path is None:
            return {}
        try:
            with self.config_path.open("r", encoding="utf-8") as f:
                # Acquire a shared lock for reading
                fcntl.flock(f.fileno(), fcntl.LOCK_SH)
                data = yaml.safe_load(f)

                # Release the lock
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        except FileNotFoundError:
            logger.error("[APP CONFIGURATION] Config file %s not found.", self.config_path)
            return {}
        except (OSError, yaml.YAMLError) as exc:
            logger.error("[APP CONFIGURATION] Failed to load config %s: %s", self.config_path, exc)
            return {}

        if data is None:
            return {}
        if not isinstance(data, dict):
            logger.error("[APP CONFIGURATION] Config %s is not a mapping; using defaults.", self.config_path)
            return {}
        return data

    # --------------------------
    # Public API
    # --------------------------
    def reload(self) -> Dict[str, Any]:
        """Reload configuration from disk and return the loaded mapping.

        Returns the raw mapping that was loaded (which will be an empty dict on error).
        """
        self._data = self.load_from_disk()
        return self._data

    @property
    def data(self) -> Dict[str, Any]:
        """Return the current cached configuration mapping.

        Callers should not mutate it; use get(...) or the properties instead.
        """
        return self._data

    def get(self, key: str, default: Any = None) -> Any:
        """Safe lookup for top-level configuration keys."""
        return self._data.get(key, default)

    # --------------------------
    # High-level shortcuts
    # --------------------------
    @property
    def name(self) -> str:
        return str(self._data.get("name") or DEFAULT_NAME)

    @property
    def prefix(self) -> str:
        """Return the default command prefix (``"!"`` unless configured)."""
        return str(self._data.get("prefix") or DEFAULT_PREFIX)

    @property
    def owner_id(self) -> Optional[str]:
        value = self._data.get("owner_id")
        return str(value) if value not in (None, "") else None

    @property
    def admins(self) -> List[str]:
        return _id_list(self._data.get("admins"))

    @property
    def support(self) -> List[str]:
        return _id_list(self._data.get("support"))

    @property
    def guild_prefixes(self) -> Dict[str, str]:
        """Return per-guild prefix overrides keyed by guild id string."""
        prefixes = self._data.get("guild_prefixes") or {}
        if not isinstance(prefixes, dict):
            logger.warning("[APP CONFIGURATION] 'guild_prefixes' is not a mapping; ignoring it.")
            return {}
        return {str(guild_id): str(prefix) for guild_id, prefix in prefixes.items() if prefix}

    def guild_prefix(self, guild_id: Optional[str]) -> Optional[str]:
        """Return the prefix override for ``guild_id``, or None."""
        if guild_id is None:
            return None
        return self.guild_prefixes.get(str(guild_id))

    @property
    def messages(self) -> Dict[str, str]:
        """Return feedback templates with configured overrides merged over the defaults."""
        overrides = self._data.get("messages") or {}
        if not isinstance(overrides, dict):
            overrides = {}
        merged = dict(DEFAULT_MESSAGES)
        merged.update({str(key): str(value) for key, value in overrides.items()})
        return merged

    def message(self, key: str) -> str:
        return self.messages.get(key, key)

    @property
    def feedback_delete_seconds(self) -> float:
        """Return how long transient feedback stays visible before it is deleted."""
        value = self._data.get("feedback_delete_seconds", DEFAULT_FEEDBACK_DELETE_SECONDS)
        try:
            return max(0.0, float(value))
        except (TypeError, ValueError):
            logger.warning("[APP CONFIGURATION] Invalid feedback_delete_seconds %r; using default.", value)
            return DEFAULT_FEEDBACK_DELETE_SECONDS

    @property
    def debug(self) -> bool:
        return bool(self._data.get("debug", False))


# Shared application-wide configuration instance
app_config = AppConfig(CONFIG_PATH)
