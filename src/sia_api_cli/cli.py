"""Command-line client that turns path tokens and flags into one Sia API call."""

from __future__ import annotations

import sys
from typing import BinaryIO, Iterable, Mapping, Optional

import httpx

from .command import ParsedCommand, parse_inputs
from .config import Config, load_api_password
from .dispatcher import build_client, dispatch
from .endpoints import SIA_API_ENDPOINTS, EndpointTemplate, resolve_endpoint
from .errors import EXIT_FAILURE, CliError
from .logging import configure_logging, get_logger
from .request import build_request


EXIT_OK = 0

logger = get_logger("siaapi.cli")


def _apply_endpoint(command: ParsedCommand, registry: Iterable[EndpointTemplate]) -> Optional[EndpointTemplate]:
    resolved = resolve_endpoint(command.request_path, command.method, registry)
    if resolved is None:
        return None
    template = resolved.template
    if not command.method:
        command.method = template.method
    if resolved.via_alias and not template.has_wildcards:
        logger.debug(
            "Rewriting alias path",
            extra={"alias": command.request_path, "canonical": template.path},
        )
        command.request_path = template.path
    return template


def run(
    argv: Iterable[str],
    *,
    environ: Optional[Mapping[str, str]] = None,
    output: Optional[BinaryIO] = None,
    client: Optional[httpx.Client] = None,
    registry: Iterable[EndpointTemplate] = SIA_API_ENDPOINTS,
) -> int:
    """Execute one invocation and return the process exit code."""

    try:
        config = Config.from_sources(environ)
        configure_logging(config)
        logger.debug("Loaded configuration", extra={"config": config.logging_dict()})

        command = parse_inputs(argv, config)
        if command.api_password is None:
            command.api_password = load_api_password(config, environ)

        template = _apply_endpoint(command, registry)
        request = build_request(command, template)

        output = output if output is not None else sys.stdout.buffer
        with client if client is not None else build_client(config.timeout) as http:
            dispatch(request, output, http)
    except CliError as exc:
        sys.stderr.write(f"Error: {exc}\n")
        return exc.exit_code
    except httpx.RequestError as exc:
        sys.stderr.write(f"HTTP request failed: {exc}\n")
        return EXIT_FAILURE
    return EXIT_OK


def main(argv: Optional[Iterable[str]] = None) -> None:
    args = sys.argv[1:] if argv is None else argv
    sys.exit(run(args))


if __name__ == "__main__":
    main()
