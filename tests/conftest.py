"""Shared fixtures: a scripted fake gateway standing in for the HTTP transport."""

from __future__ import annotations

from typing import Callable, Union
from xml.sax.saxutils import escape

import pytest
from bs4 import BeautifulSoup

from pyigd import Gateway

Reply = Union[str, Exception, Callable[["Call"], Union[str, Exception]]]


def success_response(action: str, **fields) -> str:
    """Build a wire-compliant <action>Response envelope."""
    content = "".join(f"<{name}>{escape(str(value))}</{name}>" for name, value in fields.items())
    return (
        '<?xml version="1.0"?>\n'
        '<s:Envelope xmlns:s="http://schemas.xmlsoap.org/soap/envelope/" '
        's:encodingStyle="http://schemas.xmlsoap.org/soap/encoding/">'
        "<s:Body>"
        f'<u:{action}Response xmlns:u="urn:schemas-upnp-org:service:WANIPConnection:1">'
        f"{content}"
        f"</u:{action}Response>"
        "</s:Body>"
        "</s:Envelope>"
    )


def fault_response(code: Union[int, str], description: str = "Error") -> str:
    """Build a UPnP fault envelope as routers send it with HTTP 500."""
    return (
        '<?xml version="1.0"?>\n'
        '<s:Envelope xmlns:s="http://schemas.xmlsoap.org/soap/envelope/" '
        's:encodingStyle="http://schemas.xmlsoap.org/soap/encoding/">'
        "<s:Body>"
        "<s:Fault>"
        "<faultcode>s:Client</faultcode>"
        "<faultstring>UPnPError</faultstring>"
        "<detail>"
        '<UPnPError xmlns="urn:schemas-upnp-org:control-1-0">'
        f"<errorCode>{code}</errorCode>"
        f"<errorDescription>{escape(description)}</errorDescription>"
        "</UPnPError>"
        "</detail>"
        "</s:Fault>"
        "</s:Body>"
        "</s:Envelope>"
    )


class Call:
    """One request received by the fake gateway."""

    def __init__(self, url: str, header: str, body: str):
        self.url = url
        self.header = header
        self.body = body
        self.action = header.strip('"').split("#", 1)[1]
        self.soup = BeautifulSoup(body, "lxml-xml")

    def arg(self, name: str) -> str | None:
        element = self.soup.find(name)
        if element is None:
            return None
        return element.get_text()


class FakeRouter:
    """Replaces send_async; replies from per-action queues and records calls."""

    def __init__(self):
        self.calls: list[Call] = []
        self.replies: dict[str, list[Reply]] = {}

    def reply(self, action: str, *replies: Reply) -> None:
        self.replies.setdefault(action, []).extend(replies)

    def actions(self) -> list[str]:
        return [call.action for call in self.calls]

    async def __call__(self, url, header, body, session=None, timeout=None):
        call = Call(url, header, body)
        self.calls.append(call)
        queue = self.replies.get(call.action)
        if not queue:
            pytest.fail(f"Unexpected {call.action} request")
        reply = queue[0] if len(queue) == 1 else queue.pop(0)
        if callable(reply):
            reply = reply(call)
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture
def fake_router(monkeypatch):
    router = FakeRouter()
    monkeypatch.setattr("pyigd.models.gateway.send_async", router)
    return router


@pytest.fixture
def gateway():
    return Gateway(("192.168.1.1", 5000), "/ctl/IPConn")


class PortSequence:
    """Port source returning the given ports in order."""

    def __init__(self, *ports: int):
        self.ports = list(ports)
        self.drawn: list[int] = []

    def __call__(self) -> int:
        port = self.ports.pop(0)
        self.drawn.append(port)
        return port
