"""Connection probes: connect, verify named objects, or fetch full inventory.

The result dictionaries keep the JSON shape the zPod console expects:
``{"connected": False, "error": ...}`` when connect() fails, otherwise
``{"connected": True, "version": ..., "checks": {...}}`` or
``{"connected": True, "version": ..., "inventory": {...}}``.
"""

from __future__ import annotations

import asyncio
import re
from typing import Any, Optional

from pydantic import Field

from zpod_inventory import nsx, vsphere
from zpod_inventory.config import EndpointConfig
from zpod_inventory.errors import ConnectError
from zpod_inventory.utils.logging import get_logger

logger = get_logger(__name__)

# A /24 per zPod
ZPOD_PREFIX = 24
MAX_NETWORKS_PREFIX = 21

_CIDR_PREFIX_RE = re.compile(r"/(\d+)$")


class VsphereProbeRequest(EndpointConfig):
    """vCenter credentials plus the optional object names to verify."""

    datacenter: Optional[str] = Field(None, description="Datacenter name")
    resource_pool: Optional[str] = Field(None, description="Cluster name")
    storage_datastore: Optional[str] = Field(None, description="Datastore or datastore cluster name")
    vmfolder: Optional[str] = Field(None, description="VM folder name")


class NsxProbeRequest(EndpointConfig):
    """NSX Manager credentials plus the optional object names to verify."""

    edgecluster: Optional[str] = Field(None, description="Edge cluster name")
    t0: Optional[str] = Field(None, description="Tier-0 gateway name")
    transportzone: Optional[str] = Field(None, description="Transport zone name")
    networks: Optional[str] = Field(None, description="Network pool in CIDR notation")


def check_networks(networks: str) -> dict[str, Any]:
    """Validate a zPod network pool and compute how many zPods it can hold.

    Each zPod takes a /24, so only pools of /21 or larger are accepted.
    A value without a prefix length is accepted as is.
    """
    m = _CIDR_PREFIX_RE.search(networks)
    if not m:
        return {"ok": True}
    prefix = int(m.group(1))
    if prefix > MAX_NETWORKS_PREFIX:
        return {"ok": False}
    return {"ok": True, "cidr": f"/{prefix}", "zpodCapacity": 2 ** (ZPOD_PREFIX - prefix)}


def _not_connected(err: ConnectError) -> dict[str, Any]:
    return {"connected": False, "error": str(err)}


async def probe_vsphere(request: VsphereProbeRequest) -> dict[str, Any]:
    try:
        session = await vsphere.connect(request.hostname, request.username, request.secret)
    except ConnectError as e:
        return _not_connected(e)

    checks: dict[str, dict[str, Any]] = {}
    if request.datacenter:
        checks["datacenter"] = {"ok": await vsphere.check_datacenter(session, request.datacenter)}
    if request.resource_pool:
        checks["resource_pool"] = {"ok": await vsphere.check_resource_pool(session, request.resource_pool)}
    if request.storage_datastore:
        info = await vsphere.check_datastore(session, request.storage_datastore)
        checks["storage_datastore"] = (
            {"ok": True, "capacityGB": info.capacity_gb, "usedGB": info.used_gb}
            if info.exists
            else {"ok": False}
        )
    if request.vmfolder:
        checks["vmfolder"] = {"ok": await vsphere.check_vm_folder(session, request.vmfolder)}

    return {"connected": True, "version": session.version, "checks": checks}


async def probe_nsx(request: NsxProbeRequest) -> dict[str, Any]:
    try:
        session = await nsx.connect(request.hostname, request.username, request.secret)
    except ConnectError as e:
        return _not_connected(e)

    checks: dict[str, dict[str, Any]] = {}
    if request.edgecluster:
        checks["edgecluster"] = {"ok": await nsx.check_edge_cluster(session, request.edgecluster)}
    if request.t0:
        checks["t0"] = {"ok": await nsx.check_t0(session, request.t0)}
    if request.transportzone:
        checks["transportzone"] = {"ok": await nsx.check_transport_zone(session, request.transportzone)}
    if request.networks:
        checks["networks"] = check_networks(request.networks)

    return {"connected": True, "version": session.version, "checks": checks}


async def vsphere_inventory(endpoint: EndpointConfig) -> dict[str, Any]:
    """Connect and fetch datacenters, pools, datastores and VM folders concurrently."""
    try:
        session = await vsphere.connect(endpoint.hostname, endpoint.username, endpoint.secret)
    except ConnectError as e:
        return _not_connected(e)

    datacenters, resource_pools, datastores, vm_folders = await asyncio.gather(
        vsphere.list_datacenters(session),
        vsphere.list_resource_pools(session),
        vsphere.list_datastores(session),
        vsphere.list_vm_folders(session),
    )
    return {
        "connected": True,
        "version": session.version,
        "inventory": {
            "datacenters": datacenters,
            "resourcePools": [p.model_dump() for p in resource_pools],
            "datastores": [d.model_dump(by_alias=True) for d in datastores],
            "vmFolders": [f.model_dump() for f in vm_folders],
        },
    }


async def nsx_inventory(endpoint: EndpointConfig) -> dict[str, Any]:
    """Connect and fetch transport zones, edge clusters and Tier-0s concurrently."""
    try:
        session = await nsx.connect(endpoint.hostname, endpoint.username, endpoint.secret)
    except ConnectError as e:
        return _not_connected(e)

    transport_zones, edge_clusters, t0_gateways = await asyncio.gather(
        nsx.list_transport_zones(session),
        nsx.list_edge_clusters(session),
        nsx.list_t0_gateways(session),
    )
    return {
        "connected": True,
        "version": session.version,
        "inventory": {
            "transportZones": transport_zones,
            "edgeClusters": edge_clusters,
            "t0Gateways": t0_gateways,
        },
    }
