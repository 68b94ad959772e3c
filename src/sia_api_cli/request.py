"""HTTP request construction for a parsed command."""

from __future__ import annotations

import base64
from typing import List, Mapping, MutableMapping, Optional, Sequence, Tuple

import httpx

from .command import ParsedCommand
from .endpoints import EndpointTemplate, ParamLocation
from .errors import RequestBuildError
from .logging import get_logger, redact_mapping
from .units import ParamFormat, format_value


SCHEME = "http://"
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"

logger = get_logger("siaapi.request")

Pairs = List[Tuple[str, str]]


def _formatted_params(
    params: Mapping[str, Sequence[str]], endpoint: Optional[EndpointTemplate]
) -> Tuple[Pairs, Pairs]:
    """Split params into declared-query pairs and default-placement pairs.

    Keys are emitted in sorted order; repeated values keep their order.
    """

    query: Pairs = []
    default: Pairs = []
    for key in sorted(params):
        spec = endpoint.param(key) if endpoint else None
        fmt = spec.format if spec else ParamFormat.DEFAULT
        target = query if spec and spec.location is ParamLocation.QUERY else default
        for value in params[key]:
            target.append((key, format_value(value, fmt)))
    return query, default


def basic_auth_header(password: str) -> str:
    """Return a basic auth header value with an empty username."""

    token = base64.b64encode(f":{password}".encode("utf-8")).decode("ascii")
    return f"Basic {token}"


def encode_params(pairs: Sequence[Tuple[str, str]]) -> str:
    """URL-encode `pairs` the same way for query strings and form bodies."""

    return str(httpx.QueryParams(list(pairs)))


def build_request(
    command: ParsedCommand,
    endpoint: Optional[EndpointTemplate] = None,
    body: Optional[bytes] = None,
) -> httpx.Request:
    """Return a ready-to-send request for `command`.

    GET params go into the query string; POST params become a form body
    unless `body` is supplied. Basic auth uses an empty username.
    """

    url = SCHEME + command.api_address + command.request_path
    method = command.method
    query, default = _formatted_params(command.params, endpoint)

    if method == "GET":
        query = sorted(query + default, key=lambda pair: pair[0])
    elif method == "POST":
        if body is None and default:
            body = encode_params(default).encode("ascii")
    elif default:
        logger.warning(
            "Parameters are only sent for GET and POST requests",
            extra={"method": method, "ignored": sorted({key for key, _ in default})},
        )
    if query:
        url += "?" + encode_params(query)

    headers: MutableMapping[str, str] = {
        "Authorization": basic_auth_header(command.api_password or ""),
        "User-Agent": command.user_agent,
    }
    if method == "POST":
        headers["Content-Type"] = FORM_CONTENT_TYPE

    try:
        request = httpx.Request(method, url, headers=headers, content=body)
    except (httpx.InvalidURL, ValueError) as exc:
        raise RequestBuildError(f"Invalid request URL {url!r}: {exc}") from exc
    logger.debug(
        "Built request",
        extra={
            "method": request.method,
            "url": str(request.url),
            "headers": redact_mapping(dict(request.headers)),
        },
    )
    return request
