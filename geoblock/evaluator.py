"""Decide whether an IP address is allowed, from CIDR and country rules."""

from __future__ import annotations

import ipaddress
from typing import Iterable, Protocol, Union

from .config import Config, DefaultAction, Rule, RuleType

PRIVATE_ADDRESS = "-"
"""Country value a lookup returns for private network addresses."""

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]
IPNetwork = Union[ipaddress.IPv4Network, ipaddress.IPv6Network]


class GeoblockError(Exception):
    """Raised for invalid configuration or addresses, and failed lookups."""


class Lookup(Protocol):
    """Something able to tell the country of an IP address."""

    def country(self, ip: IPAddress) -> str:
        """Return the lower-case country code of ``ip``."""
        ...


def _parse_ip(addr: str) -> IPAddress:
    if "%" in addr:
        raise ValueError(addr)
    return ipaddress.ip_address(addr)


def _parse_cidr(value: str) -> IPNetwork:
    if "/" not in value or "%" in value:
        raise ValueError(value)
    return ipaddress.ip_network(value, strict=False)


def _contains(network: IPNetwork, ip: IPAddress) -> bool:
    if network.version == 4 and ip.version == 6:
        mapped = ip.ipv4_mapped
        if mapped is None:
            return False
        ip = mapped
    elif network.version == 6 and ip.version == 4:
        ip = ipaddress.IPv6Address(f"::ffff:{ip}")
    return ip in network


class Evaluator:
    """Evaluates whether an IP address is allowed or blocked."""

    def __init__(self, name: str, config: Config) -> None:
        self.name = name
        self._fallback = config.default_action
        self._lookups: list[Lookup] = []
        self._allowed_countries, self._allowed_networks = self._compile(config.allowlist)
        self._blocked_countries, self._blocked_networks = self._compile(config.blocklist)

    def add_lookup(self, lookup: Lookup) -> None:
        """Add a country lookup; when several are added, the last one's answer counts."""
        self._lookups.append(lookup)

    def evaluate(self, addr: str) -> tuple[bool, str]:
        """Return whether ``addr`` is allowed, and its country when known."""
        try:
            ip = _parse_ip(addr)
        except ValueError:
            raise GeoblockError(f"{self.name}: invalid IP address: {addr}") from None

        if any(_contains(network, ip) for network in self._blocked_networks):
            return False, ""

        country = ""
        for lookup in self._lookups:
            try:
                country = lookup.country(ip)
            except Exception as exc:
                raise GeoblockError(f"{self.name}: country lookup: {exc}") from exc

        if country in self._blocked_countries:
            return False, country

        if any(_contains(network, ip) for network in self._allowed_networks):
            return True, country

        if country in self._allowed_countries:
            return True, country

        return self._fallback == DefaultAction.ALLOW, country

    def _compile(self, rules: Iterable[Rule]) -> tuple[set[str], list[IPNetwork]]:
        countries: set[str] = set()
        networks: list[IPNetwork] = []
        for rule in rules:
            if rule.type == RuleType.COUNTRY:
                countries.add(rule.value.lower())
            elif rule.type == RuleType.CIDR:
                try:
                    networks.append(_parse_cidr(rule.value))
                except ValueError:
                    raise GeoblockError(
                        f"{self.name}: invalid {rule.type} rule: {rule.value}"
                    ) from None
            else:
                raise GeoblockError(f"{self.name}: invalid rule type: {rule.type}")
        return countries, networks