"""
Argument binding and validation for text commands.

Positional tokens are bound to a command's declared :class:`ArgumentSpec`
order and validated through a pydantic model generated once per schema. When
that fails, the same tokens parsed as CLI-style flags (``--name value``) are
overlaid and validation is retried, so both call styles are accepted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
from typing import Annotated, Any, Dict, List, Optional, Sequence, Tuple, Type

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, ValidationError, create_model

from dispatchcord.datatypes.command_datatypes import ArgumentError, ArgumentKind, ArgumentSpec, Command
from dispatchcord.datatypes.discord_datatypes import UserID

POSITIONAL_KEY = "_"


def _coerce_user_reference(value: Any) -> str:
    """Normalize a raw id or ``<@id>`` / ``<@!id>`` mention to the id string."""
    if isinstance(value, bool):
        raise ValueError("Expected a user mention or id")
    if isinstance(value, (int, str)):
        try:
            return str(UserID(value))
        except ValueError:
            pass
    raise ValueError("Expected a user mention or id")


UserReference = Annotated[str, BeforeValidator(_coerce_user_reference)]

_KIND_TYPES: Dict[ArgumentKind, Any] = {
    ArgumentKind.STRING: str,
    ArgumentKind.NUMBER: float,
    ArgumentKind.BOOLEAN: bool,
    ArgumentKind.USER: UserReference,
    ArgumentKind.ANY: Any,
}


@dataclass
class ArgumentValidation:
    """Outcome of binding and validating a command's arguments.

    Attributes:
        args: Validated values keyed by parameter name (empty on failure).
        errors: Validation errors from the positional pass, or None on success.
        cli_args: The tokens parsed as CLI flags.
    """

    args: Dict[str, Any] = field(default_factory=dict)
    errors: Optional[List[ArgumentError]] = None
    cli_args: Dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.errors is None


@lru_cache(maxsize=None)
def build_argument_model(specs: Tuple[ArgumentSpec, ...]) -> Type[BaseModel]:
    """Build (and cache) the pydantic model validating one argument schema.

    Fields are stored under positional internal names with the declared name as
    alias, so parameter names never collide with pydantic's own attributes.

    Raises:
        TypeError: If an argument has an unknown kind.
        ValueError: If an argument name is empty or reserved.
    """
    fields: Dict[str, Any] = {}
    for index, spec in enumerate(specs):
        if not isinstance(spec, ArgumentSpec):
            raise TypeError(f"Argument #{index} is not an ArgumentSpec: {spec!r}")
        if not spec.name or spec.name == POSITIONAL_KEY:
            raise ValueError(f"Argument #{index} has an invalid name: {spec.name!r}")
        if spec.kind not in _KIND_TYPES:
            raise TypeError(f"Invalid '{spec.kind}' type for argument '{spec.name}'")

        annotation = _KIND_TYPES[spec.kind]
        if spec.optional:
            fields[f"arg_{index}"] = (Optional[annotation], Field(default=None, alias=spec.name))
        else:
            fields[f"arg_{index}"] = (annotation, Field(..., alias=spec.name))

    return create_model(
        "CommandArguments",
        __config__=ConfigDict(extra="ignore", populate_by_name=False),
        **fields,
    )


def parse_cli_flags(tokens: Sequence[str]) -> Dict[str, Any]:
    """Parse argument tokens the way a command line would.

    Supports ``--name value``, ``--name=value``, ``--flag`` (True),
    ``--no-flag`` (False), short groups like ``-abc`` (each True, the last one
    may take a value) and ``--`` to end flag parsing. Repeated keys collect
    into a list. Everything else lands in ``"_"``.

    Example:
        >>> parse_cli_flags(["hi", "--name", "bob", "-v"])
        {'_': ['hi'], 'name': 'bob', 'v': True}
    """
    parsed: Dict[str, Any] = {POSITIONAL_KEY: []}
    index = 0
    while index < len(tokens):
        token = tokens[index]
        following = tokens[index + 1] if index + 1 < len(tokens) else None
        takes_value = following not in (None, "", "--") and not _is_flag(following)

        if token == "":
            pass
        elif token == "--":
            parsed[POSITIONAL_KEY].extend(t for t in tokens[index + 1:] if t)
            break
        elif token.startswith("--") and _is_flag(token):
            key, sep, value = token[2:].partition("=")
            if sep:
                _assign(parsed, key, value)
            elif key.startswith("no-"):
                _assign(parsed, key[3:], False)
            elif takes_value:
                _assign(parsed, key, following)
                index += 1
            else:
                _assign(parsed, key, True)
        elif _is_flag(token):
            letters, sep, value = token[1:].partition("=")
            for letter in letters[:-1]:
                _assign(parsed, letter, True)
            if sep:
                _assign(parsed, letters[-1], value)
            elif takes_value:
                _assign(parsed, letters[-1], following)
                index += 1
            else:
                _assign(parsed, letters[-1], True)
        else:
            parsed[POSITIONAL_KEY].append(token)
        index += 1
    return parsed


def _is_flag(token: str) -> bool:
    if not token.startswith("-") or token in ("-", "--"):
        return False
    try:
        float(token)
    except ValueError:
        return True
    return False


def _assign(parsed: Dict[str, Any], key: str, value: Any) -> None:
    if not key:
        return
    if key in parsed:
        existing = parsed[key]
        parsed[key] = existing + [value] if isinstance(existing, list) else [existing, value]
    else:
        parsed[key] = value


def _to_argument_errors(error: ValidationError) -> List[ArgumentError]:
    return [
        ArgumentError(
            field=".".join(str(part) for part in detail["loc"]) or "args",
            type=detail["type"],
            message=detail["msg"],
        )
        for detail in error.errors()
    ]


def validate_arguments(command: Command, tokens: Sequence[str]) -> ArgumentValidation:
    """Bind ``tokens`` to ``command``'s schema and validate them.

    The positional pass runs first. If it fails, the CLI-flag parse is overlaid
    on the positional values and validation is retried; if either pass succeeds
    the arguments are accepted. Otherwise the positional pass's errors are
    returned.

    Args:
        command: Command whose ``args`` schema applies.
        tokens: Argument tokens following the command name.

    Returns:
        ArgumentValidation: Accepted values or the errors to report.
    """
    cli_args = parse_cli_flags(tokens)
    if not command.args:
        return ArgumentValidation(cli_args=cli_args)

    model = build_argument_model(command.args)
    params = {spec.name: tokens[i] for i, spec in enumerate(command.args) if i < len(tokens)}

    try:
        validated = model.model_validate(params)
    except ValidationError as positional_error:
        overlaid = {**params, **cli_args}
        overlaid.pop(POSITIONAL_KEY, None)
        try:
            validated = model.model_validate(overlaid)
        except ValidationError:
            return ArgumentValidation(errors=_to_argument_errors(positional_error), cli_args=cli_args)

    return ArgumentValidation(args=validated.model_dump(by_alias=True), cli_args=cli_args)
