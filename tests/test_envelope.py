"""Tests for SOAP envelope rendering (pyigd/network/envelope.py)."""

from __future__ import annotations

import pytest
from bs4 import BeautifulSoup

from pyigd import PortMappingProtocol
from pyigd.network import build_request, make_header, parse_response

pytestmark = [pytest.mark.unit]


class TestHeader:
    def test_header_is_quoted_service_and_action(self):
        assert (
            make_header("AddPortMapping")
            == '"urn:schemas-upnp-org:service:WANIPConnection:1#AddPortMapping"'
        )

    def test_build_request_uses_same_header(self):
        request = build_request("GetExternalIPAddress")
        assert request.header == make_header("GetExternalIPAddress")


class TestBody:
    def test_starts_with_xml_declaration(self):
        body = build_request("GetExternalIPAddress").body
        assert body.startswith('<?xml version="1.0"?>')

    def test_envelope_structure(self):
        body = build_request("GetExternalIPAddress").body
        soup = BeautifulSoup(body, "lxml-xml")
        envelope = soup.find(True, recursive=False)
        assert envelope.name == "Envelope"
        action = envelope.find("Body", recursive=False).find("GetExternalIPAddress", recursive=False)
        assert action is not None
        assert action.namespace == "urn:schemas-upnp-org:service:WANIPConnection:1"

    def test_params_keep_given_order(self):
        params = [("NewProtocol", "TCP"), ("NewExternalPort", 1234), ("NewRemoteHost", "")]
        body = build_request("DeletePortMapping", params).body
        soup = BeautifulSoup(body, "lxml-xml")
        names = [tag.name for tag in soup.find("DeletePortMapping").find_all(True, recursive=False)]
        assert names == ["NewProtocol", "NewExternalPort", "NewRemoteHost"]

    @pytest.mark.parametrize("protocol", list(PortMappingProtocol))
    def test_protocol_rendered_literally(self, protocol):
        body = build_request("AddPortMapping", [("NewProtocol", protocol)]).body
        assert f"<NewProtocol>{protocol.value}</NewProtocol>" in body

    def test_description_is_escaped(self):
        body = build_request("AddPortMapping", [("NewPortMappingDescription", "a & <b>")]).body
        assert "a &amp; &lt;b&gt;" in body
        assert "a & <b>" not in body

    def test_escaped_description_round_trips_through_parser(self):
        description = "Tom & Jerry <game> server"
        body = build_request(
            "AddPortMapping",
            [("NewPortMappingDescription", description), ("NewEnabled", 1)],
        ).body

        text, element = parse_response(body, "AddPortMapping")

        assert text == body
        assert element.find("NewPortMappingDescription").string == description
        assert element.find("NewEnabled").string == "1"
