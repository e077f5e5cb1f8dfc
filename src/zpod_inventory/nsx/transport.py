"""REST/JSON transport for the NSX Manager API.

NSX accepts HTTP Basic auth on every request, so nothing is cached between
calls: the Authorization header is rebuilt each time.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass

import requests
import urllib3

from zpod_inventory.config import DebugSettings
from zpod_inventory.utils.logging import dump_payload, format_json, get_logger

logger = get_logger(__name__)

urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)


@dataclass(frozen=True)
class RestResponse:
    status: int
    body: str


def basic_auth_header(username: str, password: str) -> str:
    token = base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")
    return f"Basic {token}"


def rest_get(host: str, path: str, username: str, password: str) -> RestResponse:
    """GET ``https://{host}{path}`` with Basic auth.

    Non-2xx statuses are returned to the caller; only transport failures
    (``requests.RequestException``) raise.
    """
    debug = DebugSettings.from_env().nsx
    if debug:
        dump_payload(f"// NSX GET {path} → {host}", "", "json")

    resp = requests.get(
        f"https://{host}{path}",
        headers={
            "Authorization": basic_auth_header(username, password),
            "Accept": "application/json",
        },
        verify=False,
    )
    text = resp.text

    if debug:
        dump_payload(f"// NSX GET {path} ← {resp.status_code}", format_json(text), "json")
    logger.debug(f"NSX GET {path} on {host} returned {resp.status_code}")

    return RestResponse(status=resp.status_code, body=text)
