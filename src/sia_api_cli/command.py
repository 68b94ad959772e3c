"""Translation of raw CLI tokens into a request command."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from .config import DEFAULT_API_ADDRESS, DEFAULT_USER_AGENT, Config


FLAG_PREFIX = "--"


@dataclass
class ParsedCommand:
    """A single API call assembled from the command line.

    `api_password` stays ``None`` until either ``--apipassword`` or the
    default credential fills it in.
    """

    request_path: str = ""
    method: str = ""
    api_address: str = DEFAULT_API_ADDRESS
    user_agent: str = DEFAULT_USER_AGENT
    api_password: Optional[str] = None
    params: Dict[str, List[str]] = field(default_factory=dict)


def _is_flag(token: str) -> bool:
    return token.startswith(FLAG_PREFIX)


def parse_inputs(tokens: Iterable[str], config: Optional[Config] = None) -> ParsedCommand:
    """Scan `tokens` left to right into a :class:`ParsedCommand`.

    ``--key [value]`` flags set overrides (``method``, ``addr``,
    ``useragent``, ``apipassword``) or append to the parameter map; any
    other token becomes the next path segment.
    """

    config = config or Config()
    command = ParsedCommand(api_address=config.api_address, user_agent=config.user_agent)
    args = list(tokens)

    i = 0
    while i < len(args):
        arg = args[i]
        i += 1
        if not arg:
            continue

        if not _is_flag(arg):
            command.request_path += "/" + arg
            continue

        key = arg[len(FLAG_PREFIX):].lower()
        value = ""
        if i < len(args) and not _is_flag(args[i]):
            value = args[i]
            i += 1

        if key == "method":
            command.method = value.upper()
        elif key == "addr":
            command.api_address = value
        elif key == "useragent":
            command.user_agent = value
        elif key == "apipassword":
            command.api_password = value
        else:
            command.params.setdefault(key, []).append(value)

    return command
