"""SOAP-over-HTTPS transport for the vSphere Web Services API.

Every call is a single POST to ``/sdk``. Certificate validation is disabled:
targets are lab vCenters with self-signed certificates.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Sequence

import requests
import urllib3

from zpod_inventory.config import DebugSettings
from zpod_inventory.utils.logging import dump_payload, format_xml, get_logger

logger = get_logger(__name__)

urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

SDK_PATH = "/sdk"
SOAP_ACTION_PREFIX = "urn:vim25/"


@dataclass(frozen=True)
class SoapResponse:
    status: int
    body: str
    cookies: list[str] = field(default_factory=list)


def _response_cookies(resp: requests.Response) -> list[str]:
    """Every Set-Cookie value cut down to its ``name=value`` part."""
    raw_headers = resp.raw.headers if resp.raw is not None else None
    if raw_headers is None:
        return []
    return [c.split(";")[0].strip() for c in raw_headers.getlist("Set-Cookie")]


def soap_post(
    host: str,
    body: str,
    soap_action: str,
    cookies: Optional[Sequence[str]] = None,
) -> SoapResponse:
    """POST a SOAP envelope to ``https://{host}/sdk``.

    Args:
        host: vCenter hostname or IP address
        body: Complete SOAP envelope
        soap_action: Method name, with or without the ``urn:vim25/`` prefix
        cookies: Session cookies (``name=value``) to replay

    Returns:
        SoapResponse; HTTP error statuses are returned, not raised.

    Raises:
        requests.RequestException: On DNS, TLS or connection failures
    """
    action = soap_action.removeprefix(SOAP_ACTION_PREFIX)
    debug = DebugSettings.from_env().vsphere

    headers = {
        "Content-Type": "text/xml; charset=utf-8",
        "SOAPAction": f"{SOAP_ACTION_PREFIX}{action}",
    }
    if cookies:
        headers["Cookie"] = "; ".join(cookies)

    if debug:
        dump_payload(f"<!-- SOAP {action} → {host} -->", format_xml(body), "xml")

    resp = requests.post(
        f"https://{host}{SDK_PATH}",
        data=body.encode("utf-8"),
        headers=headers,
        verify=False,
    )
    text = resp.text

    if debug:
        dump_payload(f"<!-- SOAP {action} ← {resp.status_code} -->", format_xml(text), "xml")
    logger.debug(f"SOAP {action} on {host} returned {resp.status_code}")

    return SoapResponse(
        status=resp.status_code,
        body=text,
        cookies=_response_cookies(resp),
    )


_ENVELOPE_START = (
    '<?xml version="1.0" encoding="UTF-8"?>\n'
    '<soapenv:Envelope xmlns:soapenv="http://schemas.xmlsoap.org/soap/envelope/" '
    'xmlns:vim25="urn:vim25">\n'
    "<soapenv:Body>\n"
)
_ENVELOPE_END = "\n</soapenv:Body></soapenv:Envelope>"


def soap_envelope(body: str) -> str:
    """Wrap a ``urn:vim25`` method element in a SOAP 1.1 envelope."""
    return f"{_ENVELOPE_START}{body}{_ENVELOPE_END}"
