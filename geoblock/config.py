"""Configuration of the geoblock middleware."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from http import HTTPStatus


class RuleType(str, Enum):
    """Kind of value a rule matches against."""

    COUNTRY = "country"
    CIDR = "cidr"

    def __str__(self) -> str:
        return self.value


class DefaultAction(str, Enum):
    """Action taken when no rule matches a request."""

    ALLOW = "allow"
    BLOCK = "block"

    def __str__(self) -> str:
        return self.value


@dataclass
class Rule:
    """A rule deciding whether a request is allowed or blocked."""

    type: RuleType | str
    value: str


def _default_blocklist() -> list[Rule]:
    return [
        Rule(RuleType.CIDR, "127.0.0.0/8"),  # IPv4 loopback
        Rule(RuleType.CIDR, "10.0.0.0/8"),  # RFC1918
        Rule(RuleType.CIDR, "172.16.0.0/12"),  # RFC1918
        Rule(RuleType.CIDR, "192.168.0.0/16"),  # RFC1918
        Rule(RuleType.CIDR, "169.254.0.0/16"),  # RFC3927 link-local
        Rule(RuleType.CIDR, "::1/128"),  # IPv6 loopback
        Rule(RuleType.CIDR, "fe80::/10"),  # IPv6 link-local
        Rule(RuleType.CIDR, "fc00::/7"),  # IPv6 unique local addresses
    ]


@dataclass
class Config:
    """Settings of the middleware.

    enabled: whether requests are filtered at all.
    allow_lets_encrypt: let ACME HTTP challenge requests through.
    disallowed_status_code: HTTP status returned for rejected requests.
    default_action: what to do when no rule matches.
    """

    enabled: bool = False
    allow_lets_encrypt: bool = True
    disallowed_status_code: int = int(HTTPStatus.FORBIDDEN)
    default_action: DefaultAction | str = DefaultAction.BLOCK
    allowlist: list[Rule] = field(default_factory=list)
    blocklist: list[Rule] = field(default_factory=_default_blocklist)


def create_config() -> Config:
    """Return the default configuration."""
    return Config()