"""Pattern-based extraction from vSphere SOAP responses.

The request set sent by this package is small and fixed, so responses are
scanned with regular expressions instead of a schema-driven SOAP stack.
Lookups never raise: a missing tag is an empty string, a missing property is
an absent key. Property names and values must not contain the delimiters
matched below, which holds for vCenter output.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import lru_cache
from xml.sax.saxutils import unescape

_ENTITIES = {"&quot;": '"', "&apos;": "'"}

_RETURNVAL_RE = re.compile(r"<returnval[^>]*>")
_OBJ_RE = re.compile(r'<obj[^>]*type="([^"]+)"[^>]*>([^<]+)</obj>')
_PROPSET_RE = re.compile(r"<propSet>([\s\S]*?)</propSet>")
_NAME_RE = re.compile(r"<name[^>]*>([^<]*)</name>")
_VAL_RE = re.compile(r"<val[^>]*>([^<]*)</val>")


@dataclass(frozen=True)
class ParsedObject:
    """One managed object from a RetrieveProperties response."""
    type: str                # managed object type, e.g. "Datastore"
    mo_ref: str              # server-assigned id, e.g. "datastore-15"
    props: dict[str, str] = field(default_factory=dict)


def _text(raw: str) -> str:
    return unescape(raw, _ENTITIES)


@lru_cache(maxsize=32)
def _tag_re(tag: str) -> re.Pattern[str]:
    name = re.escape(tag)
    return re.compile(rf"<{name}(?:\s[^>]*)?>([^<]*)</{name}>")


def extract_tag(xml: str, tag: str) -> str:
    """Text of the first ``<tag ...>text</tag>`` in ``xml``, or ``""``."""
    m = _tag_re(tag).search(xml)
    return _text(m.group(1)) if m else ""


def parse_return_values(xml: str) -> list[ParsedObject]:
    """Split a RetrieveProperties response into ParsedObjects.

    Each ``<returnval>`` block yields one object. For every ``<propSet>`` the
    first ``<val>`` is kept; later values of a multi-valued property, and
    later propSets repeating a name, are ignored.
    """
    results: list[ParsedObject] = []
    for block in _RETURNVAL_RE.split(xml)[1:]:
        obj = _OBJ_RE.search(block)
        if not obj:
            continue

        props: dict[str, str] = {}
        for prop_set in _PROPSET_RE.finditer(block):
            name = _NAME_RE.search(prop_set.group(1))
            if not name:
                continue
            prop_name = _text(name.group(1))
            val = _VAL_RE.search(prop_set.group(1))
            if val and not props.get(prop_name):
                props[prop_name] = _text(val.group(1))

        results.append(ParsedObject(type=obj.group(1), mo_ref=obj.group(2).strip(), props=props))
    return results
