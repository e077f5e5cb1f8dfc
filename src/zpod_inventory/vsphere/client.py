"""vCenter session establishment over the raw SOAP API."""

from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass
from xml.sax.saxutils import escape

import requests

from zpod_inventory.errors import (
    InvalidCredentialsError,
    LoginFailedError,
    MalformedResponseError,
    ServerUnreachableError,
)
from zpod_inventory.utils.logging import get_logger
from zpod_inventory.vsphere.transport import soap_envelope, soap_post
from zpod_inventory.vsphere.xml import extract_tag

logger = get_logger(__name__)

_PRODUCT_PREFIX_RE = re.compile(r"^VMware vCenter Server\s*", re.IGNORECASE)


@dataclass(frozen=True)
class ServiceContent:
    """The subset of ``ServiceInstance.content`` needed to log in and query."""
    session_manager: str
    property_collector: str
    root_folder: str
    version: str = ""
    full_name: str = ""

    @classmethod
    def from_xml(cls, xml: str) -> "ServiceContent":
        """Parse a RetrieveServiceContent response.

        Raises:
            MalformedResponseError: If any of the three object references is missing
        """
        content = cls(
            session_manager=extract_tag(xml, "sessionManager"),
            property_collector=extract_tag(xml, "propertyCollector"),
            root_folder=extract_tag(xml, "rootFolder"),
            version=extract_tag(xml, "version"),
            full_name=extract_tag(xml, "fullName"),
        )
        if not (content.session_manager and content.property_collector and content.root_folder):
            raise MalformedResponseError("Unable to parse ServiceContent")
        return content

    @property
    def display_version(self) -> str:
        """Product name without the "VMware vCenter Server" prefix, else the API version."""
        return _PRODUCT_PREFIX_RE.sub("", self.full_name or self.version)


@dataclass(frozen=True)
class VsphereSession:
    """An authenticated vCenter session.

    Immutable: inventory calls read it and never refresh it. Each new UI
    action is expected to call connect() again.
    """
    cookies: tuple[str, ...]
    host: str
    version: str
    property_collector: str
    root_folder: str


def _retrieve_service_content_body() -> str:
    return soap_envelope(
        "<vim25:RetrieveServiceContent>"
        '<vim25:_this type="ServiceInstance">ServiceInstance</vim25:_this>'
        "</vim25:RetrieveServiceContent>"
    )


def _login_body(session_manager: str, username: str, password: str) -> str:
    return soap_envelope(
        "<vim25:Login>"
        f'<vim25:_this type="SessionManager">{session_manager}</vim25:_this>'
        f"<vim25:userName>{escape(username)}</vim25:userName>"
        f"<vim25:password>{escape(password)}</vim25:password>"
        "</vim25:Login>"
    )


def _connect_blocking(host: str, username: str, password: str) -> VsphereSession:
    logger.info(f"Connecting to vCenter {host}")
    try:
        content_res = soap_post(host, _retrieve_service_content_body(), "RetrieveServiceContent")
    except requests.RequestException as e:
        logger.error(f"vCenter {host} unreachable: {e}")
        raise ServerUnreachableError() from e

    if content_res.status != 200:
        logger.error(f"RetrieveServiceContent on {host} returned {content_res.status}")
        raise ServerUnreachableError()

    content = ServiceContent.from_xml(content_res.body)

    try:
        login_res = soap_post(
            host,
            _login_body(content.session_manager, username, password),
            "Login",
        )
    except requests.RequestException as e:
        logger.error(f"vCenter {host} unreachable during login: {e}")
        raise ServerUnreachableError() from e

    if login_res.status != 200:
        if "InvalidLogin" in login_res.body:
            logger.warning(f"Invalid credentials for {username} on {host}")
            raise InvalidCredentialsError()
        logger.error(f"Login on {host} returned {login_res.status}")
        raise LoginFailedError()

    session = VsphereSession(
        cookies=tuple(login_res.cookies),
        host=host,
        version=content.display_version,
        property_collector=content.property_collector,
        root_folder=content.root_folder,
    )
    logger.info(f"Connected to vCenter: {host} (version: {session.version})")
    return session


async def connect(host: str, username: str, password: str) -> VsphereSession:
    """Authenticate against vCenter and return a session.

    Args:
        host: vCenter hostname or IP address
        username: Login username (e.g. administrator@vsphere.local)
        password: Login password

    Returns:
        VsphereSession carrying the session cookies and root object references

    Raises:
        ServerUnreachableError: Transport failure or non-200 service description
        MalformedResponseError: Service description lacks a required reference
        InvalidCredentialsError: vCenter answered with an InvalidLogin fault
        LoginFailedError: Login failed for any other reason
    """
    return await asyncio.to_thread(_connect_blocking, host, username, password)
