"""Generic PropertyCollector query, the primitive all inventory calls use."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Sequence

from zpod_inventory.utils.logging import get_logger
from zpod_inventory.vsphere.client import VsphereSession
from zpod_inventory.vsphere.transport import soap_envelope, soap_post
from zpod_inventory.vsphere.traversal import TraversalDef, build_traversal_xml, wire_folder_traversal
from zpod_inventory.vsphere.xml import ParsedObject, parse_return_values

logger = get_logger(__name__)


@dataclass(frozen=True)
class PropertyQuery:
    object_type: str
    path_set: Sequence[str]
    traversals: Sequence[TraversalDef]


def build_retrieve_properties_body(session: VsphereSession, query: PropertyQuery) -> str:
    """RetrieveProperties envelope starting at the session's root Folder."""
    traversals = wire_folder_traversal(query.traversals)
    path_set = "".join(f"<vim25:pathSet>{p}</vim25:pathSet>" for p in query.path_set)
    return soap_envelope(
        "<vim25:RetrieveProperties>"
        f'<vim25:_this type="PropertyCollector">{session.property_collector}</vim25:_this>'
        "<vim25:specSet>"
        "<vim25:propSet>"
        f"<vim25:type>{query.object_type}</vim25:type>"
        f"{path_set}"
        "</vim25:propSet>"
        "<vim25:objectSet>"
        f'<vim25:obj type="Folder">{session.root_folder}</vim25:obj>'
        f"{build_traversal_xml(traversals)}"
        "</vim25:objectSet>"
        "</vim25:specSet>"
        "</vim25:RetrieveProperties>"
    )


async def retrieve_properties(session: VsphereSession, query: PropertyQuery) -> list[ParsedObject]:
    """Run one PropertyCollector query.

    A non-200 answer (usually an expired session) yields an empty list.
    Transport failures from ``requests`` propagate.
    """
    body = build_retrieve_properties_body(session, query)
    res = await asyncio.to_thread(
        soap_post, session.host, body, "RetrieveProperties", session.cookies
    )
    if res.status != 200:
        logger.warning(
            f"RetrieveProperties for {query.object_type} on {session.host} "
            f"returned {res.status}, treating as empty"
        )
        return []

    objects = parse_return_values(res.body)
    logger.debug(f"RetrieveProperties for {query.object_type}: {len(objects)} objects")
    return objects
