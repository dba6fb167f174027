from enum import Enum
from typing import Union


class PortMappingProtocol(Enum):
    TCP = "TCP"
    UDP = "UDP"

    def __str__(self) -> str:
        # rendered verbatim into NewProtocol
        return self.value

    @classmethod
    def coerce(cls, protocol: Union["PortMappingProtocol", str]) -> "PortMappingProtocol":
        """
        Accepts a member or "TCP"/"UDP" in any case

        Raises ValueError for anything else
        """

        if isinstance(protocol, cls):
            return protocol
        try:
            return cls(str(protocol).upper())
        except ValueError:
            raise ValueError("Protocol must be TCP or UDP") from None
