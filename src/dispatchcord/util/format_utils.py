import re
from typing import Any, Optional

from dispatchcord.util.logger import get_logger

logger = get_logger("format_utils")

ZERO_WIDTH_SPACE = "\u200b"
REDACTED = "[REDACTED]"
PLACEHOLDER_PATTERN = re.compile(r"\{(\d+)\}")

_UNITS = (
    ("day", 86400),
    ("hour", 3600),
    ("minute", 60),
    ("second", 1),
)


def lines(*parts: Any) -> str:
    """Join the given parts into a newline separated block of text."""
    return "\n".join(str(part) for part in parts)


def format_message(template: str, *values: Any) -> str:
    """Fill ``{0}``, ``{1}``... placeholders in a feedback template.

    Unlike ``str.format`` other braces are left untouched, so templates edited
    in the config file cannot break rendering. Placeholders without a matching
    value are kept verbatim.

    Args:
        template: Template text with positional placeholders.
        *values: Values substituted by index.

    Returns:
        The rendered text.
    """

    def replace(match: re.Match) -> str:
        index = int(match.group(1))
        if index < len(values):
            return str(values[index])
        logger.debug("Template placeholder {%d} has no value: %r", index, template)
        return match.group(0)

    return PLACEHOLDER_PATTERN.sub(replace, template)


def _plural(amount: float, unit: str) -> str:
    text = f"{amount:g}"
    return f"{text} {unit}" if amount == 1 else f"{text} {unit}s"


def humanize_seconds(seconds: float) -> str:
    """Return a human-readable duration.

    Durations under a minute keep one decimal place (``"2.5 seconds"``);
    longer ones are broken into whole units (``"1 minute, 5 seconds"``).
    """
    seconds = max(0.0, float(seconds))
    if seconds < 60:
        return _plural(round(seconds, 1), "second")

    remaining = int(round(seconds))
    parts = []
    for unit, size in _UNITS:
        amount, remaining = divmod(remaining, size)
        if amount:
            parts.append(_plural(amount, unit))
    return ", ".join(parts)


def clean_text(value: Any, token: Optional[str] = None) -> str:
    """Make arbitrary output safe to echo back into a channel.

    Non-string values are converted with ``repr`` semantics for containers and
    ``str`` otherwise. Backticks and ``@`` get a zero-width space appended so
    they cannot close code blocks or ping anyone, and the bot token is redacted.
    """
    if isinstance(value, str):
        text = value
    elif isinstance(value, (dict, list, tuple, set)):
        text = repr(value)
    else:
        text = str(value)

    if token:
        text = text.replace(token, REDACTED)
    return text.replace("`", "`" + ZERO_WIDTH_SPACE).replace("@", "@" + ZERO_WIDTH_SPACE)
