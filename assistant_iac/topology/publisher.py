"""
Output contract for downstream modules.

Projects a Topology and SecurityBoundary into a frozen, index-ordered record.
Consumers bind by position (database subnet groups, search cluster placement,
compute placement), so every list is ordered by AZ index, which synthesis
keeps stable across runs.

`resolve` maps a logical entity id to the value consumers should see: the id
itself in plans and tests, a pulumi.Output[str] of the provider id once the
Pulumi components exist.
"""

from dataclasses import dataclass
from typing import Any, Callable, Mapping

from assistant_iac.configs.constants import SEARCH_SUBNET_CAP
from assistant_iac.topology.models import SecurityBoundary, Topology
from assistant_iac.topology.security import APP_ROLE

Resolver = Callable[[str], Any]


def identity(entity_id: str) -> str:
    return entity_id


def _export_name(value: str) -> str:
    return value.replace("-", "_").replace(".", "_")


@dataclass(frozen=True)
class NetworkContract:
    """
    Published network values, ordered by AZ index.

    endpoint_ids is keyed by (endpoint kind, service), since one service can
    have both a gateway and an interface endpoint.
    """
    vpc_id: Any
    vpc_cidr: str
    public_subnet_ids: tuple[Any, ...]
    public_subnet_cidrs: tuple[str, ...]
    private_subnet_ids: tuple[Any, ...]
    private_subnet_cidrs: tuple[str, ...]
    availability_zones: tuple[str, ...]
    nat_gateway_ids: tuple[Any, ...]
    nat_addresses: tuple[Any, ...]
    endpoint_ids: Mapping[tuple[str, str], Any]
    security_group_ids: Mapping[str, Any]
    client_security_group_id: Any
    database_subnet_ids: tuple[Any, ...]
    search_subnet_ids: tuple[Any, ...]

    def as_dict(self) -> dict[str, Any]:
        """Flat export map in a fixed key order."""
        exports: dict[str, Any] = {
            "vpc_id": self.vpc_id,
            "vpc_cidr": self.vpc_cidr,
            "availability_zones": list(self.availability_zones),
            "public_subnet_ids": list(self.public_subnet_ids),
            "public_subnet_cidrs": list(self.public_subnet_cidrs),
            "private_subnet_ids": list(self.private_subnet_ids),
            "private_subnet_cidrs": list(self.private_subnet_cidrs),
            "nat_gateway_ids": list(self.nat_gateway_ids),
            "nat_addresses": list(self.nat_addresses),
            "client_security_group_id": self.client_security_group_id,
            "database_subnet_ids": list(self.database_subnet_ids),
            "search_subnet_ids": list(self.search_subnet_ids),
        }
        for role, group_id in self.security_group_ids.items():
            exports[f"{_export_name(role)}_sg_id"] = group_id
        for (kind, service), endpoint_id in self.endpoint_ids.items():
            exports[f"{_export_name(service)}_{kind}_endpoint_id"] = endpoint_id
        return exports


class OutputPublisher:
    """Builds the NetworkContract handed to database, search and compute modules."""

    def __init__(
        self,
        resolve: Resolver = identity,
        resolve_address: Resolver | None = None,
    ) -> None:
        """
        Args:
            resolve: Maps an entity id to the published id value
            resolve_address: Maps an EIP entity id to its public address;
                defaults to `resolve`
        """
        self.resolve = resolve
        self.resolve_address = resolve_address or resolve

    def publish(self, topology: Topology, boundary: SecurityBoundary) -> NetworkContract:
        resolve = self.resolve
        private_ids = tuple(resolve(s.id) for s in topology.private_subnets)
        search_count = min(SEARCH_SUBNET_CAP, topology.zone_count)

        return NetworkContract(
            vpc_id=resolve(topology.vpc.id),
            vpc_cidr=topology.vpc.cidr,
            public_subnet_ids=tuple(resolve(s.id) for s in topology.public_subnets),
            public_subnet_cidrs=tuple(s.cidr for s in topology.public_subnets),
            private_subnet_ids=private_ids,
            private_subnet_cidrs=tuple(s.cidr for s in topology.private_subnets),
            availability_zones=tuple(b.az for b in topology.bundles),
            nat_gateway_ids=tuple(resolve(n.id) for n in topology.nat_gateways),
            nat_addresses=tuple(self.resolve_address(a.id) for a in topology.addresses),
            endpoint_ids={
                (e.endpoint_type.value, e.service): resolve(e.id) for e in boundary.endpoints
            },
            security_group_ids={g.role: resolve(g.id) for g in boundary.groups},
            client_security_group_id=resolve(boundary.group(APP_ROLE).id),
            database_subnet_ids=private_ids,
            search_subnet_ids=private_ids[:search_count],
        )
