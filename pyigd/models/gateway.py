from __future__ import annotations

import logging
from datetime import timedelta
from ipaddress import IPv4Address
from typing import List, Optional, Sequence, Tuple, Union, Any

import aiohttp
from bs4.element import Tag
from yarl import URL

from pyigd.static import MAX_MAPPING_ENTRIES, REQUEST_TIMEOUT, UPnPErrorCode
from pyigd.exceptions import (
    ActionNotAuthorized,
    DescriptionTooLong,
    ExternalPortZeroInvalid,
    InternalPortZeroInvalid,
    InvalidResponse,
    NoSuchPortMapping,
    OnlyPermanentLeasesSupported,
    PortInUse,
    RequestError,
    SamePortValuesRequired,
    SpecifiedArrayIndexInvalid,
    translate_fault,
)
from pyigd.network import build_request, child_text, parse_response, run_blocking, send_async
from pyigd.models.protocol import PortMappingProtocol
from pyigd.models.mapping import PortMappingEntry, check_port, lease_seconds
from pyigd.models.allocator import AnyPortAllocator, PortSource

logger = logging.getLogger(__name__)

SocketAddress = Tuple[IPv4Address, int]
Protocol = Union[PortMappingProtocol, str]
Duration = Union[int, timedelta]

GET_EXTERNAL_IP_FAULTS = {
    UPnPErrorCode.ACTION_NOT_AUTHORIZED: ActionNotAuthorized,
}
ADD_PORT_FAULTS = {
    UPnPErrorCode.STRING_ARGUMENT_TOO_LONG: DescriptionTooLong,
    UPnPErrorCode.ACTION_NOT_AUTHORIZED: ActionNotAuthorized,
    UPnPErrorCode.CONFLICT_IN_MAPPING_ENTRY: PortInUse,
    UPnPErrorCode.SAME_PORT_VALUES_REQUIRED: SamePortValuesRequired,
    UPnPErrorCode.ONLY_PERMANENT_LEASES_SUPPORTED: OnlyPermanentLeasesSupported,
}
REMOVE_PORT_FAULTS = {
    UPnPErrorCode.ACTION_NOT_AUTHORIZED: ActionNotAuthorized,
    UPnPErrorCode.NO_SUCH_ENTRY_IN_ARRAY: NoSuchPortMapping,
}
GET_MAPPING_FAULTS = {
    UPnPErrorCode.ACTION_NOT_AUTHORIZED: ActionNotAuthorized,
    UPnPErrorCode.SPECIFIED_ARRAY_INDEX_INVALID: SpecifiedArrayIndexInvalid,
    UPnPErrorCode.NO_SUCH_ENTRY_IN_ARRAY: NoSuchPortMapping,
}


def _socket_address(addr: Tuple[Any, int]) -> SocketAddress:
    host, port = addr
    return IPv4Address(str(host)), int(port)


def _mapping_params(protocol: Protocol, external_port: int, local_addr: SocketAddress,
                    lease_duration: Duration, description: str) -> Sequence[Tuple[str, Any]]:
    return (
        ("NewProtocol", PortMappingProtocol.coerce(protocol)),
        ("NewExternalPort", external_port),
        ("NewInternalClient", local_addr[0]),
        ("NewInternalPort", local_addr[1]),
        ("NewLeaseDuration", lease_seconds(lease_duration)),
        ("NewPortMappingDescription", description),
        ("NewEnabled", 1),
        ("NewRemoteHost", ""),
    )


class Gateway:
    """
    A router control endpoint, as found by discovery

    Every operation comes in two forms: a coroutine (name ending in _async)
    to await on the caller's event loop, and a blocking method that runs the
    same coroutine on a private event loop. Blocking methods cannot be called
    from a running event loop.

    The async forms accept an aiohttp session to send on; every form accepts
    a timeout in seconds for each request.
    """

    def __init__(self, addr: Tuple[Any, int], control_url: str):
        """
        addr - (ip, port) of the gateway's HTTP server
        control_url - path of the WANIPConnection control url
        """

        self._addr = _socket_address(addr)
        self._control_url = control_url

    @property
    def addr(self) -> SocketAddress:
        return self._addr

    @property
    def control_url(self) -> str:
        return self._control_url

    @property
    def url(self) -> URL:
        ip, port = self._addr
        return URL.build(scheme="http", host=str(ip), port=port).join(URL(self._control_url))

    async def _perform_request(self, action: str, params: Sequence[Tuple[str, Any]], ok: str,
                               session: Optional[aiohttp.ClientSession], timeout: float) -> Tuple[str, Tag]:
        request = build_request(action, params)
        text = await send_async(str(self.url), request.header, request.body, session=session, timeout=timeout)
        return parse_response(text, ok)

    async def get_external_ip_async(self, session: Optional[aiohttp.ClientSession] = None,
                                    timeout: float = REQUEST_TIMEOUT) -> IPv4Address:
        """
        Returns the external ip address of the gateway
        """

        try:
            text, response = await self._perform_request(
                "GetExternalIPAddress", (), "GetExternalIPAddressResponse", session, timeout
            )
        except RequestError as e:
            raise translate_fault(e, GET_EXTERNAL_IP_FAULTS)

        ip = child_text(response, "NewExternalIPAddress")
        try:
            return IPv4Address(ip.strip())
        except (AttributeError, ValueError):
            raise InvalidResponse(text) from None

    def get_external_ip(self, timeout: float = REQUEST_TIMEOUT) -> IPv4Address:
        return run_blocking(self.get_external_ip_async(timeout=timeout))

    async def _add_port_mapping(self, protocol: Protocol, external_port: int, local_addr: Tuple[Any, int],
                                lease_duration: Duration, description: str,
                                session: Optional[aiohttp.ClientSession] = None,
                                timeout: float = REQUEST_TIMEOUT) -> None:
        params = _mapping_params(protocol, external_port, _socket_address(local_addr), lease_duration, description)
        await self._perform_request("AddPortMapping", params, "AddPortMappingResponse", session, timeout)
        logger.debug("Mapped %s port %d to %s:%d", params[0][1], external_port, *local_addr)

    async def _add_any_port_mapping(self, protocol: Protocol, external_port: int, local_addr: Tuple[Any, int],
                                    lease_duration: Duration, description: str,
                                    session: Optional[aiohttp.ClientSession] = None,
                                    timeout: float = REQUEST_TIMEOUT) -> int:
        params = _mapping_params(protocol, external_port, _socket_address(local_addr), lease_duration, description)
        text, response = await self._perform_request(
            "AddAnyPortMapping", params, "AddAnyPortMappingResponse", session, timeout
        )
        port = child_text(response, "NewReservedPort")
        try:
            port = int(port)
        except (TypeError, ValueError):
            raise InvalidResponse(text) from None
        if not 0 <= port <= 0xFFFF:
            raise InvalidResponse(text)
        return port

    async def add_port_async(self, protocol: Protocol, external_port: int, local_addr: Tuple[Any, int],
                             lease_duration: Duration, description: str,
                             session: Optional[aiohttp.ClientSession] = None,
                             timeout: float = REQUEST_TIMEOUT) -> None:
        """
        Maps external_port on the gateway to local_addr

        protocol - "TCP" or "UDP"
        external_port - port on the gateway, cannot be 0
        local_addr - (ip, port) traffic is forwarded to, port cannot be 0
        lease_duration - seconds or timedelta, 0 is infinite
        description - description of port forward
        """

        check_port(external_port, ExternalPortZeroInvalid)
        check_port(local_addr[1], InternalPortZeroInvalid)

        try:
            await self._add_port_mapping(
                protocol, external_port, local_addr, lease_duration, description,
                session=session, timeout=timeout,
            )
        except RequestError as e:
            raise translate_fault(e, ADD_PORT_FAULTS)

    def add_port(self, protocol: Protocol, external_port: int, local_addr: Tuple[Any, int],
                 lease_duration: Duration, description: str, timeout: float = REQUEST_TIMEOUT) -> None:
        return run_blocking(self.add_port_async(
            protocol, external_port, local_addr, lease_duration, description, timeout=timeout
        ))

    async def add_any_port_async(self, protocol: Protocol, local_addr: Tuple[Any, int],
                                 lease_duration: Duration, description: str,
                                 port_source: Optional[PortSource] = None,
                                 session: Optional[aiohttp.ClientSession] = None,
                                 timeout: float = REQUEST_TIMEOUT) -> int:
        """
        Maps some external port on the gateway to local_addr
        Returns the external port

        port_source - callable returning candidate ports (default is a random dynamic port)
        """

        allocator = AnyPortAllocator(self, port_source)
        return await allocator.allocate(
            protocol, local_addr, lease_duration, description, session=session, timeout=timeout
        )

    def add_any_port(self, protocol: Protocol, local_addr: Tuple[Any, int], lease_duration: Duration,
                     description: str, port_source: Optional[PortSource] = None,
                     timeout: float = REQUEST_TIMEOUT) -> int:
        return run_blocking(self.add_any_port_async(
            protocol, local_addr, lease_duration, description, port_source=port_source, timeout=timeout
        ))

    async def get_any_address_async(self, protocol: Protocol, local_addr: Tuple[Any, int],
                                    lease_duration: Duration, description: str,
                                    port_source: Optional[PortSource] = None,
                                    session: Optional[aiohttp.ClientSession] = None,
                                    timeout: float = REQUEST_TIMEOUT) -> SocketAddress:
        """
        Returns the external (ip, port) after mapping some external port to local_addr
        """

        external_ip = await self.get_external_ip_async(session=session, timeout=timeout)
        external_port = await self.add_any_port_async(
            protocol, local_addr, lease_duration, description,
            port_source=port_source, session=session, timeout=timeout,
        )
        return external_ip, external_port

    def get_any_address(self, protocol: Protocol, local_addr: Tuple[Any, int], lease_duration: Duration,
                        description: str, port_source: Optional[PortSource] = None,
                        timeout: float = REQUEST_TIMEOUT) -> SocketAddress:
        return run_blocking(self.get_any_address_async(
            protocol, local_addr, lease_duration, description, port_source=port_source, timeout=timeout
        ))

    async def remove_port_async(self, protocol: Protocol, external_port: int,
                                session: Optional[aiohttp.ClientSession] = None,
                                timeout: float = REQUEST_TIMEOUT) -> None:
        """
        Removes the mapping of external_port for protocol
        """

        check_port(external_port)
        params = (
            ("NewProtocol", PortMappingProtocol.coerce(protocol)),
            ("NewExternalPort", external_port),
            ("NewRemoteHost", ""),
        )
        try:
            await self._perform_request("DeletePortMapping", params, "DeletePortMappingResponse", session, timeout)
        except RequestError as e:
            raise translate_fault(e, REMOVE_PORT_FAULTS)

    def remove_port(self, protocol: Protocol, external_port: int, timeout: float = REQUEST_TIMEOUT) -> None:
        return run_blocking(self.remove_port_async(protocol, external_port, timeout=timeout))

    async def get_mapping_async(self, index: int, session: Optional[aiohttp.ClientSession] = None,
                                timeout: float = REQUEST_TIMEOUT) -> PortMappingEntry:
        """
        Get a single mapping given the index in the gateway's table of mappings
        """

        try:
            text, response = await self._perform_request(
                "GetGenericPortMappingEntry", (("NewPortMappingIndex", index),),
                "GetGenericPortMappingEntryResponse", session, timeout,
            )
        except RequestError as e:
            raise translate_fault(e, GET_MAPPING_FAULTS)
        return PortMappingEntry.from_response(text, response)

    def get_mapping(self, index: int, timeout: float = REQUEST_TIMEOUT) -> PortMappingEntry:
        return run_blocking(self.get_mapping_async(index, timeout=timeout))

    async def get_all_mappings_async(self, session: Optional[aiohttp.ClientSession] = None,
                                     timeout: float = REQUEST_TIMEOUT) -> List[PortMappingEntry]:
        """
        Returns list of all mappings in the gateway's table
        """

        all_mappings = []
        # keep going until we get an out of bounds error
        for index in range(MAX_MAPPING_ENTRIES):
            try:
                mapping = await self.get_mapping_async(index, session=session, timeout=timeout)
            except (SpecifiedArrayIndexInvalid, NoSuchPortMapping):
                break
            all_mappings.append(mapping)

        return all_mappings

    def get_all_mappings(self, timeout: float = REQUEST_TIMEOUT) -> List[PortMappingEntry]:
        return run_blocking(self.get_all_mappings_async(timeout=timeout))

    def __eq__(self, other) -> bool:
        if not isinstance(other, Gateway):
            return NotImplemented
        return (self._addr, self._control_url) == (other._addr, other._control_url)

    def __hash__(self) -> int:
        return hash((self._addr, self._control_url))

    def __str__(self) -> str:
        return str(self.url)

    def __repr__(self) -> str:
        return f"Gateway(addr={self._addr[0]}:{self._addr[1]}, control_url={self._control_url})"
