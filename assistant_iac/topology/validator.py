"""
Network configuration validation.

Every rule is evaluated on every call, so one pass reports every problem in a
NetworkSpec. Nothing is normalized or defaulted: a field that fails a rule is
reported, never rewritten.

Rules:
- cidr-format: strict IPv4 network notation (no host bits set)
- private-range: block lies inside RFC 1918 space
- vpc-prefix: VPC prefix between /16 and /28
- high-availability: at least two availability zones
- az-distinct: zone names non-empty and unique
- subnet-count: at least two public and two private blocks
- length-mismatch: one public and one private block per zone
- within-vpc: subnet block contained in the VPC block
- overlap: subnet blocks pairwise disjoint
- domain-format: optional domain is a valid DNS name
- tag-format: AWS tag key/value limits
- service-format / service-distinct: endpoint service names, once per list
"""

import ipaddress
import re
from dataclasses import dataclass
from itertools import combinations
from typing import Sequence

from assistant_iac.configs.base import NetworkSpec
from assistant_iac.configs.constants import (
    GATEWAY_ENDPOINT_SERVICES,
    INTERFACE_ENDPOINT_SERVICES,
    MIN_AVAILABILITY_ZONES,
    PRIVATE_ADDRESS_RANGES,
    VPC_PREFIX_RANGE,
)
from assistant_iac.exceptions import ConfigError
from assistant_iac.utils.logger import get_logger

logger = get_logger(__name__)

_DOMAIN_LABEL = re.compile(r"(?!-)[a-z0-9-]{1,63}(?<!-)", re.IGNORECASE)
_SERVICE_NAME = re.compile(r"[a-z0-9]+(?:[.-][a-z0-9]+)*")
_PRIVATE_NETWORKS = tuple(ipaddress.IPv4Network(r) for r in PRIVATE_ADDRESS_RANGES)


@dataclass(frozen=True)
class Violation:
    """One failed rule for one field."""
    field: str
    rule: str
    message: str

    def __str__(self) -> str:
        return f"{self.field}: {self.message} [{self.rule}]"


def _parse(value: str) -> ipaddress.IPv4Network | None:
    try:
        return ipaddress.IPv4Network(value, strict=True)
    except (ValueError, TypeError):
        return None


class ConfigValidator:
    """Checks a NetworkSpec before any topology is computed."""

    def validate(self, spec: NetworkSpec) -> list[Violation]:
        """
        Evaluate every rule against the spec.

        Args:
            spec: NetworkSpec to check

        Returns:
            All violations found; empty when the spec is valid
        """
        violations: list[Violation] = []
        vpc = self._check_vpc(spec.vpc_cidr, violations)
        self._check_zones(spec, violations)
        self._check_subnets(spec, vpc, violations)
        self._check_domain(spec.domain_name, violations)
        self._check_tags(spec, violations)

        for violation in violations:
            logger.warning("Network config violation: %s", violation)
        return violations

    def validate_endpoints(
        self,
        gateway_services: Sequence[str] = GATEWAY_ENDPOINT_SERVICES,
        interface_services: Sequence[str] = INTERFACE_ENDPOINT_SERVICES,
    ) -> list[Violation]:
        """
        Check the endpoint service lists.

        A service may appear in both lists (S3 offers both endpoint kinds),
        but at most once per list.
        """
        violations: list[Violation] = []
        for field, services in (
            ("gateway_endpoints", gateway_services),
            ("interface_endpoints", interface_services),
        ):
            seen: set[str] = set()
            for index, service in enumerate(services):
                name = f"{field}[{index}]"
                if not isinstance(service, str) or not _SERVICE_NAME.fullmatch(service):
                    violations.append(Violation(
                        name, "service-format", f"'{service}' is not an AWS service name",
                    ))
                elif service in seen:
                    violations.append(Violation(
                        name, "service-distinct", f"'{service}' is listed more than once",
                    ))
                else:
                    seen.add(service)

        for violation in violations:
            logger.warning("Network config violation: %s", violation)
        return violations

    def require_valid(
        self,
        spec: NetworkSpec,
        gateway_services: Sequence[str] = GATEWAY_ENDPOINT_SERVICES,
        interface_services: Sequence[str] = INTERFACE_ENDPOINT_SERVICES,
    ) -> NetworkSpec:
        """
        Return the spec unchanged if it and the endpoint service lists are valid.

        Raises:
            ConfigError: With every violation when anything is invalid
        """
        violations = self.validate(spec) + self.validate_endpoints(gateway_services, interface_services)
        if violations:
            raise ConfigError(violations)
        logger.info(
            "Network config valid: vpc=%s zones=%d", spec.vpc_cidr, len(spec.az_list)
        )
        return spec

    def _check_block(
        self,
        field: str,
        value: str,
        violations: list[Violation],
    ) -> ipaddress.IPv4Network | None:
        network = _parse(value)
        if network is None:
            violations.append(Violation(
                field, "cidr-format", f"'{value}' is not a valid IPv4 CIDR block",
            ))
            return None
        if not any(network.subnet_of(r) for r in _PRIVATE_NETWORKS):
            violations.append(Violation(
                field, "private-range", f"{value} is outside RFC 1918 private address space",
            ))
        return network

    def _check_vpc(self, vpc_cidr: str, violations: list[Violation]) -> ipaddress.IPv4Network | None:
        network = self._check_block("vpc_cidr", vpc_cidr, violations)
        if network is not None:
            low, high = VPC_PREFIX_RANGE
            if not low <= network.prefixlen <= high:
                violations.append(Violation(
                    "vpc_cidr", "vpc-prefix",
                    f"prefix /{network.prefixlen} outside allowed /{low}../{high}",
                ))
        return network

    def _check_zones(self, spec: NetworkSpec, violations: list[Violation]) -> None:
        zones = spec.az_list
        if len(zones) < MIN_AVAILABILITY_ZONES:
            violations.append(Violation(
                "az_list", "high-availability",
                f"{len(zones)} availability zone(s) given, at least "
                f"{MIN_AVAILABILITY_ZONES} are required",
            ))
        seen: set[str] = set()
        for i, zone in enumerate(zones):
            if not zone or not str(zone).strip():
                violations.append(Violation(f"az_list[{i}]", "az-distinct", "zone name is empty"))
            elif zone in seen:
                violations.append(Violation(
                    f"az_list[{i}]", "az-distinct", f"zone '{zone}' is listed more than once",
                ))
            seen.add(zone)

    def _check_subnets(
        self,
        spec: NetworkSpec,
        vpc: ipaddress.IPv4Network | None,
        violations: list[Violation],
    ) -> None:
        parsed: list[tuple[str, ipaddress.IPv4Network]] = []

        for name, blocks in (("public_cidrs", spec.public_cidrs), ("private_cidrs", spec.private_cidrs)):
            if len(blocks) < MIN_AVAILABILITY_ZONES:
                violations.append(Violation(
                    name, "subnet-count",
                    f"{len(blocks)} block(s) given, at least {MIN_AVAILABILITY_ZONES} are required",
                ))
            if len(blocks) != len(spec.az_list):
                violations.append(Violation(
                    name, "length-mismatch",
                    f"{len(blocks)} block(s) for {len(spec.az_list)} availability zone(s)",
                ))
            for i, value in enumerate(blocks):
                field = f"{name}[{i}]"
                network = self._check_block(field, value, violations)
                if network is None:
                    continue
                if vpc is not None and not network.subnet_of(vpc):
                    violations.append(Violation(
                        field, "within-vpc", f"{value} is not inside VPC block {vpc}",
                    ))
                parsed.append((field, network))

        for (field_a, net_a), (field_b, net_b) in combinations(parsed, 2):
            if net_a.overlaps(net_b):
                violations.append(Violation(
                    field_b, "overlap", f"{net_b} overlaps {field_a} ({net_a})",
                ))

    def _check_domain(self, domain: str | None, violations: list[Violation]) -> None:
        if domain is None:
            return
        # A single trailing dot marks a fully qualified name
        labels = domain.removesuffix(".").split(".")
        if len(domain) > 253 or len(labels) < 2 or not all(_DOMAIN_LABEL.fullmatch(l) for l in labels):
            violations.append(Violation(
                "domain_name", "domain-format", f"'{domain}' is not a valid domain name",
            ))

    def _check_tags(self, spec: NetworkSpec, violations: list[Violation]) -> None:
        for key, value in spec.tags.items():
            if not key or len(key) > 128:
                violations.append(Violation(
                    f"tags[{key!r}]", "tag-format", "tag keys must be 1-128 characters",
                ))
            elif key.lower().startswith("aws:"):
                violations.append(Violation(
                    f"tags[{key!r}]", "tag-format", "the 'aws:' prefix is reserved",
                ))
            if len(str(value)) > 256:
                violations.append(Violation(
                    f"tags[{key!r}]", "tag-format", "tag values must be at most 256 characters",
                ))
