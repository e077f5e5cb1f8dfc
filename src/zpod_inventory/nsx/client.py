"""NSX-T inventory: transport zones, edge clusters and Tier-0 gateways.

NSX returns flat collections, so every list is one GET. There is no
server-side session; the NsxSession only holds the credentials that are
replayed with Basic auth on each call.
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from typing import Any

import requests

from zpod_inventory.errors import InvalidCredentialsError, MalformedResponseError, ServerUnreachableError
from zpod_inventory.nsx.transport import rest_get
from zpod_inventory.utils.logging import get_logger

logger = get_logger(__name__)

NODE_PATH = "/api/v1/node"
TRANSPORT_ZONES_PATH = "/api/v1/transport-zones"
EDGE_CLUSTERS_PATH = "/api/v1/edge-clusters"
TIER0_PATH = "/policy/api/v1/infra/tier-0s"

OVERLAY = "OVERLAY"


@dataclass(frozen=True)
class NodeInfo:
    """Answer of ``GET /api/v1/node``."""
    product_version: str = ""
    node_version: str = ""

    @classmethod
    def from_json(cls, body: str) -> "NodeInfo":
        try:
            data = json.loads(body)
        except ValueError as e:
            raise MalformedResponseError("Unable to parse node information") from e
        if not isinstance(data, dict):
            raise MalformedResponseError("Unable to parse node information")
        return cls(
            product_version=str(data.get("product_version") or ""),
            node_version=str(data.get("node_version") or ""),
        )

    @property
    def version(self) -> str:
        return self.product_version or self.node_version or "unknown"


@dataclass(frozen=True)
class NsxSession:
    host: str
    username: str
    password: str = field(repr=False)
    version: str = "unknown"


def _connect_blocking(host: str, username: str, password: str) -> NsxSession:
    logger.info(f"Connecting to NSX Manager {host}")
    try:
        res = rest_get(host, NODE_PATH, username, password)
    except requests.RequestException as e:
        logger.error(f"NSX Manager {host} unreachable: {e}")
        raise ServerUnreachableError() from e

    if res.status in (401, 403):
        logger.warning(f"Invalid credentials for {username} on {host}")
        raise InvalidCredentialsError()
    if res.status != 200:
        logger.error(f"GET {NODE_PATH} on {host} returned {res.status}")
        raise ServerUnreachableError()

    node = NodeInfo.from_json(res.body)
    logger.info(f"Connected to NSX Manager: {host} (version: {node.version})")
    return NsxSession(host=host, username=username, password=password, version=node.version)


async def connect(host: str, username: str, password: str) -> NsxSession:
    """Verify credentials against NSX Manager.

    Raises:
        InvalidCredentialsError: 401 or 403
        ServerUnreachableError: Transport failure or any other non-200 status
        MalformedResponseError: Node information is not a JSON object
    """
    return await asyncio.to_thread(_connect_blocking, host, username, password)


async def _fetch_results(session: NsxSession, path: str) -> list[dict[str, Any]]:
    """``results`` of a collection GET; empty on any non-200 or unreadable body."""
    res = await asyncio.to_thread(rest_get, session.host, path, session.username, session.password)
    if res.status != 200:
        logger.warning(f"GET {path} on {session.host} returned {res.status}, treating as empty")
        return []
    try:
        data = json.loads(res.body)
    except ValueError:
        logger.warning(f"GET {path} on {session.host} returned a non-JSON body, treating as empty")
        return []
    if not isinstance(data, dict):
        return []
    return [r for r in data.get("results") or [] if isinstance(r, dict)]


def _display_names(results: list[dict[str, Any]]) -> list[str]:
    names = (r.get("display_name") for r in results)
    return [n for n in names if isinstance(n, str) and n]


async def list_transport_zones(session: NsxSession) -> list[str]:
    """Sorted names of overlay transport zones. VLAN zones are skipped."""
    results = await _fetch_results(session, TRANSPORT_ZONES_PATH)
    return sorted(_display_names([r for r in results if r.get("transport_type") == OVERLAY]))


async def list_edge_clusters(session: NsxSession) -> list[str]:
    return sorted(_display_names(await _fetch_results(session, EDGE_CLUSTERS_PATH)))


async def list_t0_gateways(session: NsxSession) -> list[str]:
    return sorted(_display_names(await _fetch_results(session, TIER0_PATH)))


async def check_edge_cluster(session: NsxSession, name: str) -> bool:
    return name in _display_names(await _fetch_results(session, EDGE_CLUSTERS_PATH))


async def check_t0(session: NsxSession, name: str) -> bool:
    return name in _display_names(await _fetch_results(session, TIER0_PATH))


async def check_transport_zone(session: NsxSession, name: str) -> bool:
    """Whether a transport zone of any type has this name."""
    return name in _display_names(await _fetch_results(session, TRANSPORT_ZONES_PATH))
