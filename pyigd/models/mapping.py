from __future__ import annotations

from datetime import timedelta
from typing import Optional, Type, Union

from bs4.element import Tag

from pyigd.exceptions import InvalidResponse, MappingError
from pyigd.network import child_text
from pyigd.models.protocol import PortMappingProtocol


def lease_seconds(duration: Union[int, timedelta]) -> int:
    """
    Converts a lease duration to whole seconds (0 is infinite)
    """

    if isinstance(duration, timedelta):
        duration = int(duration.total_seconds())
    if duration < 0:
        raise ValueError("Lease duration cannot be negative")
    return int(duration)


def check_port(port: int, zero_error: Optional[Type[MappingError]] = None) -> int:
    """
    Validates a port before it is sent to the gateway

    zero_error - raised for port 0 (default is to let 0 through)

    Raises ValueError for ports outside 0..65535
    """

    if port == 0 and zero_error is not None:
        raise zero_error
    if not 0 <= port <= 0xFFFF:
        raise ValueError(f"Port {port} is out of range")
    return port


class PortMappingEntry:
    def __init__(self,
        remote_host: str = "",
        external_port: int = None,
        protocol: PortMappingProtocol = None,
        internal_ip: str = None,
        internal_port: int = None,
        enabled: bool = True,
        description: str = "",
        duration: timedelta = None
    ):
        """
        remote_host - remote host the mapping is restricted to ("" for any)
        external_port - external port on the gateway which is mapped
        protocol - protocol allowed over the port
        internal_ip - internal ip the traffic is forwarded to
        internal_port - internal port the traffic is forwarded to
        enabled - whether the gateway has the mapping switched on
        description - description of port forward
        duration - remaining lease duration as a timedelta (0 is infinite)
        """

        self.remote_host = remote_host
        self.external_port = external_port
        self.protocol = protocol
        self.internal_ip = internal_ip
        self.internal_port = internal_port
        self.enabled = enabled
        self.description = description
        self.duration = duration

    @classmethod
    def from_response(cls, text: str, response: Tag) -> PortMappingEntry:
        """
        Builds an entry from a GetGenericPortMappingEntryResponse element

        text - raw response, reported if the element is incomplete
        """

        try:
            return cls(
                remote_host=child_text(response, "NewRemoteHost") or "",
                external_port=int(child_text(response, "NewExternalPort")),
                protocol=PortMappingProtocol.coerce(child_text(response, "NewProtocol")),
                internal_ip=child_text(response, "NewInternalClient").strip(),
                internal_port=int(child_text(response, "NewInternalPort")),
                enabled=(child_text(response, "NewEnabled") or "1").strip() in ("1", "true"),
                description=child_text(response, "NewPortMappingDescription") or "",
                duration=timedelta(seconds=int(child_text(response, "NewLeaseDuration") or 0)),
            )
        except (TypeError, ValueError, AttributeError):
            raise InvalidResponse(text) from None

    def __eq__(self, other) -> bool:
        if not isinstance(other, PortMappingEntry):
            return NotImplemented
        return vars(self) == vars(other)

    def __repr__(self) -> str:
        return f"PortMappingEntry(external_port={self.external_port}, internal_ip={self.internal_ip}, internal_port={self.internal_port}, protocol={self.protocol}, description={self.description}, duration={self.duration})"
