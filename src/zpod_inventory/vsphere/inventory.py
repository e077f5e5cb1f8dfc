"""vSphere inventory listing and membership checks.

Every call runs one or more PropertyCollector queries from the root Folder.
HTTP failures degrade to empty results; nothing here raises for a missing
object.
"""

from __future__ import annotations

import asyncio
import math
from dataclasses import dataclass, field
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from zpod_inventory.utils.logging import get_logger
from zpod_inventory.vsphere.client import VsphereSession
from zpod_inventory.vsphere.collector import PropertyQuery, retrieve_properties
from zpod_inventory.vsphere.traversal import (
    TRAVERSE_CR_RP,
    TRAVERSE_DC_DATASTORE,
    TRAVERSE_DC_HOST,
    TRAVERSE_DC_VM,
    TRAVERSE_FOLDER,
    TRAVERSE_RP,
)
from zpod_inventory.vsphere.xml import ParsedObject

logger = get_logger(__name__)

GIB = 1024 ** 3

# vSphere creates this root pool under every cluster
IMPLICIT_ROOT_POOL = "Resources"
# ... and this top-level VM folder under every datacenter
IMPLICIT_VM_FOLDER = "vm"

DATASTORE_CLUSTER_TYPE = "Datastore Cluster"


class DatastoreInfo(BaseModel):
    """Result of a datastore (or datastore cluster) lookup by name.

    Dump with ``by_alias=True, exclude_none=True``: a miss serializes as
    ``{"exists": false}``.
    """
    model_config = ConfigDict(populate_by_name=True)

    exists: bool
    capacity_gb: Optional[int] = Field(None, alias="capacityGB")
    used_gb: Optional[int] = Field(None, alias="usedGB")


class ResourcePoolItem(BaseModel):
    name: str
    type: Literal["cluster", "resource_pool"]


class DatastoreListItem(BaseModel):
    """A shared datastore or a datastore cluster (StoragePod)."""
    model_config = ConfigDict(populate_by_name=True)

    mo_ref: str = Field(..., alias="moRef")
    name: str
    capacity_gb: int = Field(0, alias="capacityGB")
    used_gb: int = Field(0, alias="usedGB")
    type: str                # "Datastore Cluster", or summary.type ("VMFS", "NFS", "vsan", ...)


class VmFolderTreeItem(BaseModel):
    name: str
    children: list[VmFolderTreeItem] = Field(default_factory=list)


# ── Queries ─────────────────────────────────────────────────────

DATACENTER_QUERY = PropertyQuery("Datacenter", ("name",), (TRAVERSE_FOLDER,))

COMPUTE_RESOURCE_QUERY = PropertyQuery(
    "ComputeResource", ("name",), (TRAVERSE_FOLDER, TRAVERSE_DC_HOST)
)

RESOURCE_POOL_QUERY = PropertyQuery(
    "ResourcePool", ("name",), (TRAVERSE_FOLDER, TRAVERSE_DC_HOST, TRAVERSE_CR_RP, TRAVERSE_RP)
)

_CAPACITY_PATHS = ("name", "summary.capacity", "summary.freeSpace")

STORAGE_POD_QUERY = PropertyQuery(
    "StoragePod", _CAPACITY_PATHS, (TRAVERSE_FOLDER, TRAVERSE_DC_DATASTORE)
)

DATASTORE_QUERY = PropertyQuery(
    "Datastore",
    (*_CAPACITY_PATHS, "summary.multipleHostAccess", "summary.type", "parent"),
    (TRAVERSE_FOLDER, TRAVERSE_DC_DATASTORE),
)

DATASTORE_CAPACITY_QUERY = PropertyQuery(
    "Datastore", _CAPACITY_PATHS, (TRAVERSE_FOLDER, TRAVERSE_DC_DATASTORE)
)

VM_FOLDER_QUERY = PropertyQuery("Folder", ("name", "parent"), (TRAVERSE_FOLDER, TRAVERSE_DC_VM))

VM_FOLDER_NAME_QUERY = PropertyQuery("Folder", ("name",), (TRAVERSE_FOLDER, TRAVERSE_DC_VM))


# ── Helpers ─────────────────────────────────────────────────────

def _to_int(value: Optional[str]) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        pass
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return 0


def bytes_to_gb(value: int) -> int:
    """Bytes to whole GiB, halves rounded up."""
    return math.floor(value / GIB + 0.5)


def _capacity(obj: ParsedObject) -> tuple[int, int]:
    """(capacity_gb, used_gb) from summary.capacity / summary.freeSpace."""
    capacity = _to_int(obj.props.get("summary.capacity"))
    free_space = _to_int(obj.props.get("summary.freeSpace"))
    return bytes_to_gb(capacity), bytes_to_gb(capacity - free_space)


def _names(objects: list[ParsedObject]) -> list[str]:
    return [o.props["name"] for o in objects if o.props.get("name")]


def display_order(name: str) -> tuple[str, str]:
    """Sort key for names shown in the console: case-insensitive, lowercase first on ties."""
    return name.casefold(), name.swapcase()


# ── Datacenters ─────────────────────────────────────────────────

async def list_datacenters(session: VsphereSession) -> list[str]:
    """Sorted datacenter names."""
    results = await retrieve_properties(session, DATACENTER_QUERY)
    return sorted(_names(results))


async def check_datacenter(session: VsphereSession, name: str) -> bool:
    return name in await list_datacenters(session)


# ── Clusters and resource pools ─────────────────────────────────

async def list_resource_pools(session: VsphereSession) -> list[ResourcePoolItem]:
    """Clusters (sorted by code point) followed by resource pools (display order).

    The implicit "Resources" root pool of each cluster is left out.
    """
    cluster_results, pool_results = await asyncio.gather(
        retrieve_properties(session, COMPUTE_RESOURCE_QUERY),
        retrieve_properties(session, RESOURCE_POOL_QUERY),
    )

    clusters = [ResourcePoolItem(name=name, type="cluster") for name in sorted(_names(cluster_results))]
    pools = [
        ResourcePoolItem(name=name, type="resource_pool")
        for name in sorted(
            (
                r.props["name"]
                for r in pool_results
                if r.type == "ResourcePool"
                and r.props.get("name")
                and r.props["name"] != IMPLICIT_ROOT_POOL
            ),
            key=display_order,
        )
    ]
    return clusters + pools


async def check_resource_pool(session: VsphereSession, name: str) -> bool:
    """Whether a cluster (ComputeResource) with this name exists."""
    results = await retrieve_properties(session, COMPUTE_RESOURCE_QUERY)
    return name in _names(results)


# ── Datastores ──────────────────────────────────────────────────

def build_datastore_list(
    pods: list[ParsedObject], datastores: list[ParsedObject]
) -> list[DatastoreListItem]:
    """Merge StoragePods and Datastores into one list.

    A datastore is listed on its own only when it is shared
    (``summary.multipleHostAccess``) and its parent is not one of the pods;
    members of a pod are accounted for by the pod's aggregate figures.
    Sorted by type, then name, both in display order.
    """
    pod_refs = {p.mo_ref for p in pods}
    items: list[DatastoreListItem] = []

    for pod in pods:
        if not pod.props.get("name"):
            continue
        capacity_gb, used_gb = _capacity(pod)
        items.append(DatastoreListItem(
            mo_ref=pod.mo_ref,
            name=pod.props["name"],
            capacity_gb=capacity_gb,
            used_gb=used_gb,
            type=DATASTORE_CLUSTER_TYPE,
        ))

    for ds in datastores:
        if not ds.props.get("name"):
            continue
        if ds.props.get("summary.multipleHostAccess") != "true":
            continue
        if ds.props.get("parent") in pod_refs:
            continue
        capacity_gb, used_gb = _capacity(ds)
        items.append(DatastoreListItem(
            mo_ref=ds.mo_ref,
            name=ds.props["name"],
            capacity_gb=capacity_gb,
            used_gb=used_gb,
            type=ds.props.get("summary.type") or "unknown",
        ))

    return sorted(items, key=lambda i: (display_order(i.type), display_order(i.name)))


async def list_datastores(session: VsphereSession) -> list[DatastoreListItem]:
    """Datastore clusters and shared standalone datastores."""
    pods, datastores = await asyncio.gather(
        retrieve_properties(session, STORAGE_POD_QUERY),
        retrieve_properties(session, DATASTORE_QUERY),
    )
    return build_datastore_list(pods, datastores)


async def check_datastore(session: VsphereSession, name: str) -> DatastoreInfo:
    """Look a name up among datastores and datastore clusters."""
    datastores, pods = await asyncio.gather(
        retrieve_properties(session, DATASTORE_CAPACITY_QUERY),
        retrieve_properties(session, STORAGE_POD_QUERY),
    )
    match = next((r for r in [*datastores, *pods] if r.props.get("name") == name), None)
    if match is None:
        return DatastoreInfo(exists=False)

    capacity_gb, used_gb = _capacity(match)
    return DatastoreInfo(exists=True, capacity_gb=capacity_gb, used_gb=used_gb)


# ── VM folders ──────────────────────────────────────────────────

@dataclass
class _FolderNode:
    name: str
    parent_ref: str
    children: list[str] = field(default_factory=list)


def build_folder_tree(folders: list[ParsedObject]) -> list[VmFolderTreeItem]:
    """Turn a flat Folder list into a name-sorted tree.

    Roots are folders whose parent is not in the list (the parent is the
    Datacenter). A root named "vm" is the datacenter's implicit VM folder:
    it is dropped and its children become roots.
    """
    nodes: dict[str, _FolderNode] = {}
    for f in folders:
        if f.type != "Folder" or not f.props.get("name"):
            continue
        nodes[f.mo_ref] = _FolderNode(name=f.props["name"], parent_ref=f.props.get("parent", ""))

    for mo_ref, node in nodes.items():
        if node.parent_ref in nodes:
            nodes[node.parent_ref].children.append(mo_ref)

    roots: list[str] = []
    for mo_ref, node in nodes.items():
        if node.parent_ref in nodes:
            continue
        if node.name == IMPLICIT_VM_FOLDER:
            roots.extend(node.children)
        else:
            roots.append(mo_ref)

    def build(mo_ref: str) -> VmFolderTreeItem:
        node = nodes[mo_ref]
        children = sorted((build(c) for c in node.children), key=lambda i: display_order(i.name))
        return VmFolderTreeItem(name=node.name, children=children)

    return sorted((build(r) for r in roots), key=lambda i: display_order(i.name))


async def list_vm_folders(session: VsphereSession) -> list[VmFolderTreeItem]:
    results = await retrieve_properties(session, VM_FOLDER_QUERY)
    return build_folder_tree(results)


async def check_vm_folder(session: VsphereSession, name: str) -> bool:
    """Whether a folder with this name exists anywhere under the VM folders.

    Position in the tree is not checked.
    """
    results = await retrieve_properties(session, VM_FOLDER_NAME_QUERY)
    return name in _names(results)
