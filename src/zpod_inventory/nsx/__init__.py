"""NSX-T inventory discovery over the NSX Manager REST API."""

from zpod_inventory.nsx.client import (
    NsxSession,
    check_edge_cluster,
    check_t0,
    check_transport_zone,
    connect,
    list_edge_clusters,
    list_t0_gateways,
    list_transport_zones,
)

__all__ = [
    "NsxSession",
    "check_edge_cluster",
    "check_t0",
    "check_transport_zone",
    "connect",
    "list_edge_clusters",
    "list_t0_gateways",
    "list_transport_zones",
]
