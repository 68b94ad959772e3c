"""Known Sia API endpoints and path matching against them."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Tuple

from .errors import EndpointResolutionError
from .logging import get_logger
from .units import ParamFormat


DOCS_URL = "https://sia.tech/docs"

logger = get_logger("siaapi.endpoints")


class ParamLocation(str, Enum):
    """Where a declared parameter is placed in the request."""

    QUERY = "query"
    BODY = "body"


@dataclass(frozen=True)
class ParamSpec:
    """A parameter that needs placement or formatting beyond the defaults."""

    key: str
    location: Optional[ParamLocation] = None
    format: ParamFormat = ParamFormat.DEFAULT


@dataclass(frozen=True)
class EndpointTemplate:
    """A known endpoint: path pattern, HTTP method and optional aliases.

    Pattern segments are literal, ``:name`` (any single segment) or
    ``*name`` (the remainder of the path).
    """

    path: str
    method: str
    aliases: Tuple[str, ...] = ()
    params: Tuple[ParamSpec, ...] = ()

    @property
    def has_wildcards(self) -> bool:
        return any(seg.startswith((":", "*")) for seg in self.path.split("/"))

    def param(self, key: str) -> Optional[ParamSpec]:
        for spec in self.params:
            if spec.key == key:
                return spec
        return None

    def __str__(self) -> str:
        return f"{self.method} {self.path}"


@dataclass(frozen=True)
class ResolvedEndpoint:
    """The endpoint chosen for a command and how it was reached."""

    template: EndpointTemplate
    via_alias: bool = False


def _get(path: str, *aliases: str, params: Sequence[ParamSpec] = ()) -> EndpointTemplate:
    return EndpointTemplate(path=path, method="GET", aliases=tuple(aliases), params=tuple(params))


def _post(path: str, *aliases: str, params: Sequence[ParamSpec] = ()) -> EndpointTemplate:
    return EndpointTemplate(path=path, method="POST", aliases=tuple(aliases), params=tuple(params))


_HOST_SETTINGS = (
    ParamSpec("maxduration", format=ParamFormat.BLOCK_TIME),
    ParamSpec("windowsize", format=ParamFormat.BLOCK_TIME),
    ParamSpec("collateral", format=ParamFormat.MONTHLY_PRICE),
    ParamSpec("collateralbudget", format=ParamFormat.PRICE),
    ParamSpec("maxcollateral", format=ParamFormat.PRICE),
    ParamSpec("mincontractprice", format=ParamFormat.PRICE),
    ParamSpec("minstorageprice", format=ParamFormat.MONTHLY_PRICE),
)

_RENTER_ALLOWANCE = (
    ParamSpec("funds", format=ParamFormat.PRICE),
    ParamSpec("period", format=ParamFormat.BLOCK_TIME),
    ParamSpec("renewwindow", format=ParamFormat.BLOCK_TIME),
    ParamSpec("expectedstorage", format=ParamFormat.DATA),
    ParamSpec("expectedupload", format=ParamFormat.DATA),
    ParamSpec("expecteddownload", format=ParamFormat.DATA),
)

_UPLOAD_QUERY = (
    ParamSpec("source", location=ParamLocation.QUERY),
    ParamSpec("datapieces", location=ParamLocation.QUERY),
    ParamSpec("paritypieces", location=ParamLocation.QUERY),
    ParamSpec("force", location=ParamLocation.QUERY),
)

_UPLOADSTREAM_QUERY = (
    ParamSpec("datapieces", location=ParamLocation.QUERY),
    ParamSpec("paritypieces", location=ParamLocation.QUERY),
    ParamSpec("force", location=ParamLocation.QUERY),
    ParamSpec("repair", location=ParamLocation.QUERY),
)


# Endpoints documented at https://sia.tech/docs as of v1.4.1. Order matters:
# when an explicit method still leaves several matches, the first one wins.
SIA_API_ENDPOINTS: Tuple[EndpointTemplate, ...] = (
    _get("/consensus"),
    _get("/consensus/blocks"),
    _post("/consensus/validate/transactionset"),
    _get("/daemon/constants"),
    _get("/daemon/settings"),
    _post("/daemon/settings"),
    _get("/daemon/stop"),
    _get("/daemon/update"),
    _post("/daemon/update"),
    _get("/daemon/version"),
    _get("/gateway"),
    _post("/gateway"),
    _post("/gateway/connect/:netaddress"),
    _post("/gateway/disconnect/:netaddress"),
    _get("/host"),
    _post("/host", params=_HOST_SETTINGS),
    _post("/host/announce"),
    _get("/host/contracts"),
    _get("/host/storage", "/host/folders"),
    _post("/host/storage/folders/add", params=(ParamSpec("size", format=ParamFormat.DATA),)),
    _post("/host/storage/folders/remove"),
    _post("/host/storage/folders/resize", params=(ParamSpec("newsize", format=ParamFormat.DATA),)),
    _post("/host/storage/sectors/delete/:merkleroot"),
    _get("/host/estimatescore", params=_HOST_SETTINGS),
    _get("/hostdb"),
    _get("/hostdb/active"),
    _get("/hostdb/all"),
    _get("/hostdb/hosts/:pubkey"),
    _get("/hostdb/filtermode"),
    _post("/hostdb/filtermode"),
    _get("/miner"),
    _get("/miner/start"),
    _get("/miner/stop"),
    _get("/miner/header"),
    _post("/miner/header"),
    _get("/renter"),
    _post("/renter", params=_RENTER_ALLOWANCE),
    _post("/renter/contract/cancel"),
    _post("/renter/backup"),
    _post("/renter/recoverbackup"),
    _post("/renter/uploadedbackups"),
    _get("/renter/contracts"),
    _get("/renter/dir/*siapath"),
    _post("/renter/dir/*siapath"),
    _get("/renter/downloads"),
    _post("/renter/downloads/clear"),
    _get("/renter/prices", params=_RENTER_ALLOWANCE),
    _get("/renter/files"),
    _get("/renter/file/*siapath"),
    _post("/renter/file/*siapath"),
    _post("/renter/delete/*siapath"),
    _get("/renter/download/*siapath"),
    _post("/renter/download/cancel"),
    _get("/renter/downloadsync/*siapath"),
    _post("/renter/recoveryscan"),
    _get("/renter/recoveryscan"),
    _post("/renter/rename/*siapath"),
    _get("/renter/stream/*siapath"),
    _post("/renter/upload/*siapath", params=_UPLOAD_QUERY),
    _post("/renter/uploadstream/*siapath", params=_UPLOADSTREAM_QUERY),
    _post("/renter/validate/*siapath"),
    _get("/tpool/confirmed/:id"),
    _get("/tpool/fee"),
    _get("/tpool/raw/:id"),
    _post("/tpool/raw"),
    _get("/wallet"),
    _post("/wallet/033x"),
    _get("/wallet/address"),
    _get("/wallet/addresses"),
    _get("/wallet/seedaddrs"),
    _get("/wallet/backup"),
    _post("/wallet/changepassword"),
    _post("/wallet/init"),
    _post("/wallet/init/seed"),
    _post("/wallet/seed"),
    _get("/wallet/seeds"),
    _post("/wallet/siacoins", params=(ParamSpec("amount", format=ParamFormat.PRICE),)),
    _post("/wallet/siafunds"),
    _post("/wallet/siagkey"),
    _post("/wallet/sign"),
    _post("/wallet/sweep/seed"),
    _post("/wallet/lock"),
    _get("/wallet/transaction/:id"),
    _get("/wallet/transactions"),
    _get("/wallet/transactions/:addr"),
    _post("/wallet/unlock"),
    _get("/wallet/unlockconditions/:addr"),
    _get("/wallet/unspent"),
    _get("/wallet/verify/address/:addr"),
    _get("/wallet/watch"),
    _post("/wallet/watch"),
)


def match_path(path: str, pattern: str) -> bool:
    """Return True when the slash-delimited `path` satisfies `pattern`.

    A path longer than the pattern only matches when a ``*`` segment
    absorbs the remainder.
    """

    path_segments = path.split("/")
    segments = pattern.split("/")

    if len(path_segments) < len(segments):
        return False

    for i, path_seg in enumerate(path_segments):
        if i >= len(segments):
            return False
        seg = segments[i]
        if seg.startswith(":"):
            continue
        if seg.startswith("*"):
            return True
        if seg != path_seg:
            return False
    return True


def match_endpoints(
    path: str,
    method: str = "",
    registry: Iterable[EndpointTemplate] = SIA_API_ENDPOINTS,
) -> List[ResolvedEndpoint]:
    """Collect every template matching `path`, filtered by `method` when given."""

    matches: List[ResolvedEndpoint] = []
    for endpoint in registry:
        if method and endpoint.method != method:
            continue
        if match_path(path, endpoint.path):
            matches.append(ResolvedEndpoint(endpoint))
        elif any(match_path(path, alias) for alias in endpoint.aliases):
            matches.append(ResolvedEndpoint(endpoint, via_alias=True))
    return matches


def resolve_endpoint(
    path: str,
    method: str = "",
    registry: Iterable[EndpointTemplate] = SIA_API_ENDPOINTS,
) -> Optional[ResolvedEndpoint]:
    """Pick the single endpoint a command targets.

    Without an explicit method the match must be unique. With one, the first
    match wins and an empty match list is allowed so unlisted endpoints can
    still be reached.
    """

    matches = match_endpoints(path, method, registry)
    if not method:
        if not matches:
            raise EndpointResolutionError(
                f"No matching endpoints for {path or '/'}. "
                f"Try specifying the request method or checking {DOCS_URL}"
            )
        if len(matches) > 1:
            candidates = ", ".join(str(match.template) for match in matches)
            raise EndpointResolutionError(
                f"More than one matching endpoint for {path} ({candidates}). "
                f"Try specifying the request method or checking {DOCS_URL}"
            )
    if not matches:
        logger.info(
            "No known endpoint matches; sending request as given",
            extra={"path": path, "method": method},
        )
        return None
    resolved = matches[0]
    logger.debug(
        "Resolved endpoint",
        extra={"endpoint": str(resolved.template), "via_alias": resolved.via_alias},
    )
    return resolved
