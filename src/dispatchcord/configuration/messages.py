"""
Default user-facing feedback templates.

Templates use ``{0}``-style positional placeholders and are rendered with
:func:`dispatchcord.util.format_utils.format_message`. Any key can be overridden
from the ``messages`` section of ``config/app_config.yml``.
"""

from typing import Dict

COOLDOWN = "COOLDOWN"
USAGE = "USAGE"
COMMAND_FEEDBACK_SERVER_ONLY = "COMMAND_FEEDBACK_SERVER_ONLY"
COMMAND_FEEDBACK_DM_ONLY = "COMMAND_FEEDBACK_DM_ONLY"
COMMAND_FEEDBACK_MISSING_PERMISSION = "COMMAND_FEEDBACK_MISSING_PERMISSION"
COMMAND_FEEDBACK_MISSING_ARGS_SINGULAR = "COMMAND_FEEDBACK_MISSING_ARGS_SINGULAR"
COMMAND_FEEDBACK_MISSING_ARGS_PLURAL = "COMMAND_FEEDBACK_MISSING_ARGS_PLURAL"
COMMAND_FEEDBACK_NSFW_ONLY = "COMMAND_FEEDBACK_NSFW_ONLY"

DEFAULT_MESSAGES: Dict[str, str] = {
    # {0}: remaining time, {1}: command name
    COOLDOWN: "Please wait **{0}** before using the {1} command again.",
    # {0}: argument name, {1}: usage string
    USAGE: "You're missing the **{0}** argument! \nUsage: {1}",
    COMMAND_FEEDBACK_SERVER_ONLY: "The {0} command is unavailable via private message. Please run it in a server.",
    COMMAND_FEEDBACK_DM_ONLY: "The {0} command is only available via private message. Please run it in the DMs.",
    # {0}/{1}: caller level and tier name, {2}/{3}: required level and tier name
    COMMAND_FEEDBACK_MISSING_PERMISSION: (
        "You do not have permission to use this command.\n"
        "Your permission level is {0} ({1})\n"
        "This command requires level {2} ({3})"
    ),
    COMMAND_FEEDBACK_MISSING_ARGS_SINGULAR: "Looks like you have a problem with your args.\n{0}",
    COMMAND_FEEDBACK_MISSING_ARGS_PLURAL: "Looks like you have a few problems with your args.\n{0}",
    COMMAND_FEEDBACK_NSFW_ONLY: "This command can only be used in NSFW channels.",
}
