"""Send a built request and relay the response body."""

from __future__ import annotations

from typing import BinaryIO, Optional

import httpx

from .errors import OutputError
from .logging import get_logger


logger = get_logger("siaapi.dispatch")


def build_client(timeout: Optional[float] = None) -> httpx.Client:
    """Return an HTTP client with library-default transport behaviour.

    No timeout applies unless one is configured; siad calls such as wallet
    unlocks can block for minutes.
    """

    return httpx.Client(timeout=timeout)


def dispatch(request: httpx.Request, output: BinaryIO, client: httpx.Client) -> int:
    """Send `request` and copy the response body to `output`.

    The HTTP status is logged but never inspected for success. Returns the
    number of body bytes written. Transport failures propagate as
    :class:`httpx.RequestError`.
    """

    response = client.send(request, stream=True)
    written = 0
    try:
        logger.info(
            "Received response",
            extra={"status_code": response.status_code, "url": str(request.url)},
        )
        for chunk in response.iter_bytes():
            try:
                output.write(chunk)
            except OSError as exc:
                raise OutputError(f"Failed to write response body: {exc}") from exc
            written += len(chunk)
        try:
            output.flush()
        except OSError as exc:
            raise OutputError(f"Failed to write response body: {exc}") from exc
    finally:
        response.close()
    return written
