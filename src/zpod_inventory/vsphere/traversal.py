"""PropertyCollector traversal specs.

A query starts at the root Folder; traversal specs tell the collector which
reference properties to follow to reach the requested object type. The six
definitions below cover every path this package needs:

    Folder.childEntity          -> traverseFolder (recursive)
    Datacenter.hostFolder       -> traverseDC
    Datacenter.datastoreFolder  -> traverseDC
    Datacenter.vmFolder         -> traverseDC
    ComputeResource.resourcePool -> traverseCR
    ResourcePool.resourcePool   -> traverseRP (recursive)
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Sequence

FOLDER_TRAVERSAL = "traverseFolder"

_XSI_NS = "http://www.w3.org/2001/XMLSchema-instance"


@dataclass(frozen=True)
class TraversalDef:
    name: str
    type: str                    # object type the spec applies to
    path: str                    # reference property to follow
    select_set: tuple[str, ...]  # traversal names to continue with


TRAVERSE_FOLDER = TraversalDef(FOLDER_TRAVERSAL, "Folder", "childEntity", (FOLDER_TRAVERSAL,))
TRAVERSE_DC_HOST = TraversalDef("traverseDC", "Datacenter", "hostFolder", (FOLDER_TRAVERSAL,))
TRAVERSE_DC_DATASTORE = TraversalDef("traverseDC", "Datacenter", "datastoreFolder", (FOLDER_TRAVERSAL,))
TRAVERSE_DC_VM = TraversalDef("traverseDC", "Datacenter", "vmFolder", (FOLDER_TRAVERSAL,))
TRAVERSE_CR_RP = TraversalDef("traverseCR", "ComputeResource", "resourcePool", ("traverseRP",))
TRAVERSE_RP = TraversalDef("traverseRP", "ResourcePool", "resourcePool", ("traverseRP",))


def wire_folder_traversal(traversals: Sequence[TraversalDef]) -> list[TraversalDef]:
    """Make the folder traversal continue into every other traversal.

    Without this, objects below a nested folder are never reached. The
    folder spec is moved to the front with its select set extended by the
    other names, deduplicated in first-seen order. Applying it twice gives the
    same result as applying it once. Lists without a folder traversal are
    returned unchanged.
    """
    folder = next((t for t in traversals if t.name == FOLDER_TRAVERSAL), None)
    if folder is None:
        return list(traversals)

    others = [t for t in traversals if t.name != FOLDER_TRAVERSAL]
    select_set = tuple(dict.fromkeys([*folder.select_set, *(t.name for t in others)]))
    return [replace(folder, select_set=select_set), *others]


def build_traversal_xml(traversals: Sequence[TraversalDef]) -> str:
    """Render ``<selectSet xsi:type="TraversalSpec">`` elements for an objectSet."""
    specs = []
    for t in traversals:
        selects = "".join(
            f"<vim25:selectSet><vim25:name>{name}</vim25:name></vim25:selectSet>"
            for name in t.select_set
        )
        specs.append(
            f'<vim25:selectSet xsi:type="vim25:TraversalSpec" xmlns:xsi="{_XSI_NS}">'
            f"<vim25:name>{t.name}</vim25:name>"
            f"<vim25:type>{t.type}</vim25:type>"
            f"<vim25:path>{t.path}</vim25:path>"
            f"{selects}"
            f"</vim25:selectSet>"
        )
    return "".join(specs)
