"""
Data model for forwarding intents and the NAT rules they expand to
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class AddressFamily(Enum):
    """Address family of a forward"""
    IPV4 = "ipv4"
    IPV6 = "ipv6"

    @property
    def label(self) -> str:
        return "IPv4" if self is AddressFamily.IPV4 else "IPv6"

    @property
    def nat_keyword(self) -> str:
        """Family keyword used by dnat/daddr matches (ip or ip6)"""
        return "ip" if self is AddressFamily.IPV4 else "ip6"

    @classmethod
    def parse(cls, value: str) -> "AddressFamily":
        value = (value or '').strip().lower()
        for family in cls:
            if family.value == value:
                return family
        raise ValueError(f"Unknown address family: {value!r}")


class Protocol(Enum):
    """Transport protocol of a rule"""
    TCP = "tcp"
    UDP = "udp"


class NatType(Enum):
    """Which half of a forward a rule implements"""
    DNAT = "dnat"
    MASQUERADE = "masquerade"

    @property
    def chain(self) -> str:
        return "prerouting" if self is NatType.DNAT else "postrouting"


@dataclass(frozen=True)
class ForwardingIntent:
    """Operator request: forward local_port to remote_address:remote_port"""

    family: AddressFamily
    local_port: int
    remote_address: str
    remote_port: Optional[int] = None

    @property
    def target_port(self) -> int:
        return self.remote_port if self.remote_port is not None else self.local_port


@dataclass(frozen=True)
class ForwardingRule:
    """One low-level NAT rule belonging to a forwarding intent"""

    address_family: AddressFamily
    protocol: Protocol
    nat_type: NatType
    local_port: int
    remote_address: str
    remote_port: int

    @property
    def chain(self) -> str:
        return self.nat_type.chain

    @property
    def destination(self) -> str:
        """DNAT target; IPv6 literals are bracketed to separate the port"""
        if self.address_family is AddressFamily.IPV6:
            return f"[{self.remote_address}]:{self.remote_port}"
        return f"{self.remote_address}:{self.remote_port}"

    def statement(self) -> str:
        """Render the rule body as nft syntax"""
        family = self.address_family
        proto = self.protocol.value
        if self.nat_type is NatType.DNAT:
            return (
                f"meta nfproto {family.value} {proto} dport {self.local_port} "
                f"dnat {family.nat_keyword} to {self.destination}"
            )
        return (
            f"meta nfproto {family.value} {family.nat_keyword} daddr {self.remote_address} "
            f"{proto} dport {self.remote_port} masquerade"
        )

    def describe(self) -> str:
        arrow = f"{self.local_port} -> {self.destination}"
        return f"{self.address_family.label} {self.protocol.value.upper()} {self.nat_type.value} {arrow}"
