"""Shared fixtures: in-process fakes for vCenter (SOAP) and NSX Manager (REST)."""

import json
import re

import pytest

from zpod_inventory.nsx.client import NsxSession
from zpod_inventory.nsx.transport import RestResponse
from zpod_inventory.vsphere.client import VsphereSession
from zpod_inventory.vsphere.transport import SoapResponse


# ═══════════════════════════════════════════════════════════════════
#  SOAP payload builders
# ═══════════════════════════════════════════════════════════════════

SERVICE_CONTENT_XML = """<?xml version="1.0" encoding="UTF-8"?>
<soapenv:Envelope xmlns:soapenc="http://schemas.xmlsoap.org/soap/encoding/" xmlns:soapenv="http://schemas.xmlsoap.org/soap/envelope/" xmlns:xsd="http://www.w3.org/2001/XMLSchema" xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance">
<soapenv:Body>
<RetrieveServiceContentResponse xmlns="urn:vim25"><returnval>
<rootFolder type="Folder">group-d1</rootFolder>
<propertyCollector type="PropertyCollector">propertyCollector</propertyCollector>
<viewManager type="ViewManager">ViewManager</viewManager>
<about><name>VMware VirtualCenter</name><fullName>VMware vCenter Server 8.0.2 build-22617221</fullName><vendor>VMware, Inc.</vendor><version>8.0.2</version><build>22617221</build><apiType>VirtualCenter</apiType><apiVersion>8.0.2.0</apiVersion></about>
<setting type="OptionManager">VpxSettings</setting>
<sessionManager type="SessionManager">SessionManager</sessionManager>
</returnval></RetrieveServiceContentResponse>
</soapenv:Body>
</soapenv:Envelope>"""

LOGIN_OK_XML = """<?xml version="1.0" encoding="UTF-8"?>
<soapenv:Envelope xmlns:soapenv="http://schemas.xmlsoap.org/soap/envelope/">
<soapenv:Body><LoginResponse xmlns="urn:vim25"><returnval><key>52a1</key><userName>VSPHERE.LOCAL\\Administrator</userName></returnval></LoginResponse></soapenv:Body>
</soapenv:Envelope>"""

INVALID_LOGIN_XML = """<?xml version="1.0" encoding="UTF-8"?>
<soapenv:Envelope xmlns:soapenv="http://schemas.xmlsoap.org/soap/envelope/">
<soapenv:Body><soapenv:Fault><faultcode>ServerFaultCode</faultcode>
<faultstring>Cannot complete login due to an incorrect user name or password.</faultstring>
<detail><InvalidLoginFault xmlns="urn:vim25" xsi:type="InvalidLogin"></InvalidLoginFault></detail>
</soapenv:Fault></soapenv:Body>
</soapenv:Envelope>"""

SESSION_COOKIE = "vmware_soap_session=52a1d0c2"


def obj(type_, mo_ref, **props):
    """Shorthand for one managed object in a fake RetrieveProperties answer."""
    return {"type": type_, "mo_ref": mo_ref, "props": props}


def _prop_set(name, value):
    if isinstance(value, tuple):  # managed object reference
        ref_type, ref = value
        val = f'<val type="{ref_type}" xsi:type="ManagedObjectReference">{ref}</val>'
    else:
        val = f'<val xsi:type="xsd:string">{value}</val>'
    return f"<propSet><name>{name}</name>{val}</propSet>"


def retrieve_properties_xml(objects):
    blocks = []
    for o in objects:
        props = "".join(_prop_set(k.replace("__", "."), v) for k, v in o["props"].items())
        blocks.append(f'<returnval><obj type="{o["type"]}">{o["mo_ref"]}</obj>{props}</returnval>')
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<soapenv:Envelope xmlns:soapenv="http://schemas.xmlsoap.org/soap/envelope/" '
        'xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance">'
        '<soapenv:Body><RetrievePropertiesResponse xmlns="urn:vim25">'
        + "".join(blocks)
        + "</RetrievePropertiesResponse></soapenv:Body></soapenv:Envelope>"
    )


# ═══════════════════════════════════════════════════════════════════
#  Fake vCenter
# ═══════════════════════════════════════════════════════════════════

_QUERY_TYPE_RE = re.compile(r"<vim25:propSet><vim25:type>([^<]+)</vim25:type>")


class FakeVCenter:
    """Stands in for ``soap_post``; answers from a dict of objects per type.

    ``objects`` maps a managed object type to ``obj(...)`` entries. Property
    names use ``__`` for dots (``summary__capacity``).
    """

    def __init__(self, objects=None, username="administrator@vsphere.local", password="VMware1!"):
        self.objects = objects or {}
        self.username = username
        self.password = password
        self.status = {}        # action -> forced HTTP status
        self.error = None       # exception raised on every call
        self.service_content = SERVICE_CONTENT_XML
        self.calls = []

    def __call__(self, host, body, soap_action, cookies=None):
        action = soap_action.removeprefix("urn:vim25/")
        self.calls.append({"host": host, "action": action, "body": body, "cookies": cookies})
        if self.error is not None:
            raise self.error
        if action in self.status:
            return SoapResponse(status=self.status[action], body="<fault/>")

        if action == "RetrieveServiceContent":
            return SoapResponse(status=200, body=self.service_content)
        if action == "Login":
            ok = (
                f"<vim25:userName>{self.username}</vim25:userName>" in body
                and f"<vim25:password>{self.password}</vim25:password>" in body
            )
            if not ok:
                return SoapResponse(status=500, body=INVALID_LOGIN_XML)
            return SoapResponse(status=200, body=LOGIN_OK_XML, cookies=[SESSION_COOKIE])
        if action == "RetrieveProperties":
            query_type = _QUERY_TYPE_RE.search(body).group(1)
            return SoapResponse(status=200, body=retrieve_properties_xml(self.objects.get(query_type, [])))
        return SoapResponse(status=500, body="<fault/>")

    def bodies(self, action):
        return [c["body"] for c in self.calls if c["action"] == action]


@pytest.fixture
def fake_vcenter(monkeypatch):
    fake = FakeVCenter()
    monkeypatch.setattr("zpod_inventory.vsphere.client.soap_post", fake)
    monkeypatch.setattr("zpod_inventory.vsphere.collector.soap_post", fake)
    return fake


@pytest.fixture
def vsphere_session():
    return VsphereSession(
        cookies=(SESSION_COOKIE,),
        host="vcsa-01a.site-a.vcf.lab",
        version="8.0.2 build-22617221",
        property_collector="propertyCollector",
        root_folder="group-d1",
    )


# ═══════════════════════════════════════════════════════════════════
#  Fake NSX Manager
# ═══════════════════════════════════════════════════════════════════

NODE_INFO = {
    "node_version": "4.1.2.0.0.22589037",
    "product_version": "4.1.2.0.0.22589037",
    "kernel_version": "5.10.0",
    "hostname": "nsx-01a",
}


class FakeNsxManager:
    """Stands in for ``rest_get``; ``routes`` maps a path to (status, payload)."""

    def __init__(self, username="admin", password="VMware1!VMware1!"):
        self.username = username
        self.password = password
        self.routes = {"/api/v1/node": (200, NODE_INFO)}
        self.error = None
        self.calls = []

    def __call__(self, host, path, username, password):
        self.calls.append({"host": host, "path": path, "username": username})
        if self.error is not None:
            raise self.error
        if (username, password) != (self.username, self.password):
            return RestResponse(status=403, body='{"error_code": 403}')
        status, payload = self.routes.get(path, (404, {"error_code": 404}))
        body = payload if isinstance(payload, str) else json.dumps(payload)
        return RestResponse(status=status, body=body)

    def add_results(self, path, results, status=200):
        self.routes[path] = (status, {"results": results, "result_count": len(results)})


@pytest.fixture
def fake_nsx(monkeypatch):
    fake = FakeNsxManager()
    monkeypatch.setattr("zpod_inventory.nsx.client.rest_get", fake)
    return fake


@pytest.fixture
def nsx_session():
    return NsxSession(host="nsx-01a.site-a.vcf.lab", username="admin", password="VMware1!VMware1!", version="4.1.2.0.0.22589037")
