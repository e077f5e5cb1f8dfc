"""Tests for the SOAP response micro-parser."""

from conftest import SERVICE_CONTENT_XML


# ═══════════════════════════════════════════════════════════════════
#  extract_tag
# ═══════════════════════════════════════════════════════════════════

class TestExtractTag:
    def test_reads_object_references(self):
        from zpod_inventory.vsphere.xml import extract_tag
        assert extract_tag(SERVICE_CONTENT_XML, "rootFolder") == "group-d1"
        assert extract_tag(SERVICE_CONTENT_XML, "propertyCollector") == "propertyCollector"
        assert extract_tag(SERVICE_CONTENT_XML, "sessionManager") == "SessionManager"

    def test_reads_nested_scalars(self):
        from zpod_inventory.vsphere.xml import extract_tag
        assert extract_tag(SERVICE_CONTENT_XML, "version") == "8.0.2"
        assert extract_tag(SERVICE_CONTENT_XML, "fullName") == "VMware vCenter Server 8.0.2 build-22617221"

    def test_missing_tag_is_empty(self):
        from zpod_inventory.vsphere.xml import extract_tag
        assert extract_tag(SERVICE_CONTENT_XML, "licenseManager") == ""
        assert extract_tag("", "rootFolder") == ""

    def test_first_occurrence_wins(self):
        from zpod_inventory.vsphere.xml import extract_tag
        xml = "<a><version>1</version><version>2</version></a>"
        assert extract_tag(xml, "version") == "1"

    def test_does_not_match_longer_tag_names(self):
        from zpod_inventory.vsphere.xml import extract_tag
        xml = "<versionId>x</versionId><version>8.0</version>"
        assert extract_tag(xml, "version") == "8.0"

    def test_decodes_entities(self):
        from zpod_inventory.vsphere.xml import extract_tag
        assert extract_tag("<fullName>R&amp;D &lt;lab&gt;</fullName>", "fullName") == "R&D <lab>"


# ═══════════════════════════════════════════════════════════════════
#  parse_return_values
# ═══════════════════════════════════════════════════════════════════

DATASTORE_RESPONSE = """<?xml version="1.0" encoding="UTF-8"?>
<soapenv:Envelope xmlns:soapenv="http://schemas.xmlsoap.org/soap/envelope/" xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance">
<soapenv:Body><RetrievePropertiesResponse xmlns="urn:vim25">
<returnval>
  <obj type="Datastore">datastore-15</obj>
  <propSet><name>name</name><val xsi:type="xsd:string">vsanDatastore</val></propSet>
  <propSet><name>parent</name><val type="Folder" xsi:type="ManagedObjectReference">group-s5</val></propSet>
  <propSet><name>summary.capacity</name><val xsi:type="xsd:long">2199023255552</val></propSet>
</returnval>
<returnval>
  <obj type="Datastore">datastore-16</obj>
  <propSet><name>name</name><val xsi:type="xsd:string">nfs-01</val></propSet>
</returnval>
</RetrievePropertiesResponse></soapenv:Body></soapenv:Envelope>"""


class TestParseReturnValues:
    def test_one_object_per_returnval(self):
        from zpod_inventory.vsphere.xml import parse_return_values
        objects = parse_return_values(DATASTORE_RESPONSE)
        assert [o.mo_ref for o in objects] == ["datastore-15", "datastore-16"]
        assert all(o.type == "Datastore" for o in objects)

    def test_properties_by_name(self):
        from zpod_inventory.vsphere.xml import parse_return_values
        first = parse_return_values(DATASTORE_RESPONSE)[0]
        assert first.props == {
            "name": "vsanDatastore",
            "parent": "group-s5",
            "summary.capacity": "2199023255552",
        }

    def test_missing_property_is_absent(self):
        from zpod_inventory.vsphere.xml import parse_return_values
        second = parse_return_values(DATASTORE_RESPONSE)[1]
        assert "parent" not in second.props

    def test_only_first_value_of_multi_valued_property(self):
        from zpod_inventory.vsphere.xml import parse_return_values
        xml = (
            '<returnval><obj type="ClusterComputeResource">domain-c8</obj>'
            "<propSet><name>datastore</name>"
            '<val xsi:type="ArrayOfManagedObjectReference">'
            '<ManagedObjectReference type="Datastore">datastore-1</ManagedObjectReference></val>'
            "</propSet>"
            "<propSet><name>name</name><val>cl-01</val><val>ignored</val></propSet>"
            "</returnval>"
        )
        obj = parse_return_values(xml)[0]
        assert obj.props["name"] == "cl-01"

    def test_repeated_property_keeps_first(self):
        from zpod_inventory.vsphere.xml import parse_return_values
        xml = (
            '<returnval><obj type="Folder">group-v3</obj>'
            "<propSet><name>name</name><val>first</val></propSet>"
            "<propSet><name>name</name><val>second</val></propSet>"
            "</returnval>"
        )
        assert parse_return_values(xml)[0].props["name"] == "first"

    def test_block_without_obj_is_skipped(self):
        from zpod_inventory.vsphere.xml import parse_return_values
        xml = (
            "<returnval><propSet><name>name</name><val>orphan</val></propSet></returnval>"
            '<returnval><obj type="Datacenter">datacenter-3</obj>'
            "<propSet><name>name</name><val>DC1</val></propSet></returnval>"
        )
        objects = parse_return_values(xml)
        assert len(objects) == 1
        assert objects[0].props["name"] == "DC1"

    def test_propset_without_name_is_skipped(self):
        from zpod_inventory.vsphere.xml import parse_return_values
        xml = '<returnval><obj type="Datacenter">datacenter-3</obj><propSet><val>x</val></propSet></returnval>'
        assert parse_return_values(xml)[0].props == {}

    def test_empty_or_fault_response(self):
        from zpod_inventory.vsphere.xml import parse_return_values
        assert parse_return_values("") == []
        assert parse_return_values("<soapenv:Fault><faultstring>NotAuthenticated</faultstring></soapenv:Fault>") == []

    def test_decodes_entities_in_values(self):
        from zpod_inventory.vsphere.xml import parse_return_values
        xml = '<returnval><obj type="Folder">group-v9</obj><propSet><name>name</name><val>R&amp;D</val></propSet></returnval>'
        assert parse_return_values(xml)[0].props["name"] == "R&D"
