"""vCenter inventory discovery over the vSphere SOAP API."""

from zpod_inventory.vsphere.client import VsphereSession, connect
from zpod_inventory.vsphere.inventory import (
    DatastoreInfo,
    DatastoreListItem,
    ResourcePoolItem,
    VmFolderTreeItem,
    check_datacenter,
    check_datastore,
    check_resource_pool,
    check_vm_folder,
    list_datacenters,
    list_datastores,
    list_resource_pools,
    list_vm_folders,
)

__all__ = [
    "DatastoreInfo",
    "DatastoreListItem",
    "ResourcePoolItem",
    "VmFolderTreeItem",
    "VsphereSession",
    "check_datacenter",
    "check_datastore",
    "check_resource_pool",
    "check_vm_folder",
    "connect",
    "list_datacenters",
    "list_datastores",
    "list_resource_pools",
    "list_vm_folders",
]
