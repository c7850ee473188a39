"""Data models for discovery criteria, instance identity and member addresses."""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass
from typing import Any

from ..exceptions import AddressConstructionWarning

FILTER_SEPARATOR = ";"
KEY_VALUE_SEPARATOR = "="
VALUE_SEPARATOR = ","


@dataclass(frozen=True)
class AttributeFilter:
    """One ``name`` must equal one of ``values`` predicate for describe-instances."""

    name: str
    values: tuple[str, ...]

    def to_request(self) -> dict[str, Any]:
        """The boto3 ``Filters`` entry for this predicate."""
        return {"Name": self.name, "Values": list(self.values)}

    def to_config(self) -> str:
        return f"{self.name}{KEY_VALUE_SEPARATOR}{VALUE_SEPARATOR.join(self.values)}"


def format_filters(filters: list[AttributeFilter]) -> str:
    """Serialize filters back into the ``name=v1,v2;name2=v3`` configuration form."""
    return FILTER_SEPARATOR.join(f.to_config() for f in filters)


@dataclass(frozen=True)
class Tag:
    key: str
    value: str

    @classmethod
    def from_response(cls, raw: dict[str, Any]) -> Tag:
        return cls(key=raw["Key"], value=raw.get("Value", ""))


@dataclass(frozen=True)
class InstanceIdentity:
    """The local node's identity, resolved once from the metadata service."""

    instance_id: str
    local_address: str


@dataclass(frozen=True)
class MemberAddress:
    """A cluster member as handed back to the discovery framework."""

    host: str
    port: int

    @classmethod
    def from_ip(cls, raw_ip: str | None, port: int) -> MemberAddress:
        """Build an address from an IP literal.

        Raises AddressConstructionWarning when the host is missing or is not a
        valid IPv4/IPv6 literal. Callers skip such instances rather than fail.
        """
        if not raw_ip:
            raise AddressConstructionWarning("No private IP address")
        try:
            parsed = ipaddress.ip_address(raw_ip.strip())
        except ValueError as exc:
            raise AddressConstructionWarning(f"Invalid IP address '{raw_ip}'") from exc
        return cls(host=str(parsed), port=port)

    @property
    def is_ipv6(self) -> bool:
        return ":" in self.host

    def __str__(self) -> str:
        if self.is_ipv6:
            return f"[{self.host}]:{self.port}"
        return f"{self.host}:{self.port}"
