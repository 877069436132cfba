"""
Entity models for the synthesized network.

Every entity is a frozen dataclass with a stable logical id (also its Pulumi
resource name), the ids it depends on, and a read-only tag set. Entities that
belong to an availability zone carry its index; shared ones carry None.
"""

from dataclasses import dataclass, field, fields, is_dataclass
from enum import Enum
from typing import Any, ClassVar, Iterator, Mapping

from assistant_iac.exceptions import TopologyError


class Tier(str, Enum):
    """Subnet tier controlling internet reachability."""
    PUBLIC = "public"
    PRIVATE = "private"


class EndpointKind(str, Enum):
    """Service endpoint flavour."""
    GATEWAY = "gateway"
    INTERFACE = "interface"


class Direction(str, Enum):
    """Security group rule direction."""
    INGRESS = "ingress"
    EGRESS = "egress"


@dataclass(frozen=True)
class Vpc:
    kind: ClassVar[str] = "vpc"

    id: str
    cidr: str
    enable_dns_hostnames: bool = True
    enable_dns_support: bool = True
    depends_on: tuple[str, ...] = ()
    tags: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class InternetGateway:
    kind: ClassVar[str] = "internet_gateway"

    id: str
    vpc_id: str
    depends_on: tuple[str, ...] = ()
    tags: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Subnet:
    kind: ClassVar[str] = "subnet"

    id: str
    vpc_id: str
    cidr: str
    az: str
    tier: Tier
    index: int
    map_public_ip_on_launch: bool = False
    depends_on: tuple[str, ...] = ()
    tags: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ElasticIp:
    """Stable public address reserved for one NAT gateway."""
    kind: ClassVar[str] = "eip"

    id: str
    index: int
    depends_on: tuple[str, ...] = ()
    tags: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class NatGateway:
    kind: ClassVar[str] = "nat_gateway"

    id: str
    index: int
    subnet_id: str
    allocation_id: str
    depends_on: tuple[str, ...] = ()
    tags: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def place(
        cls,
        nat_id: str,
        public_subnet: Subnet,
        address: ElasticIp,
        internet_gateway: InternetGateway,
        tags: Mapping[str, str],
    ) -> "NatGateway":
        """
        Build a NAT gateway from the entities it is placed on.

        The public subnet and address must share the gateway's AZ index; the
        internet gateway must exist before the NAT can route out.

        Raises:
            TopologyError: If the subnet is not public or the indices differ
        """
        if public_subnet.tier is not Tier.PUBLIC:
            raise TopologyError(
                f"NAT gateway {nat_id} must sit in a public subnet, got {public_subnet.id}",
                invariant="nat-placement",
                entity_id=nat_id,
            )
        if public_subnet.index != address.index:
            raise TopologyError(
                f"NAT gateway {nat_id}: subnet index {public_subnet.index} != address index {address.index}",
                invariant="nat-placement",
                entity_id=nat_id,
            )
        return cls(
            id=nat_id,
            index=public_subnet.index,
            subnet_id=public_subnet.id,
            allocation_id=address.id,
            depends_on=(public_subnet.id, address.id, internet_gateway.id),
            tags=tags,
        )


@dataclass(frozen=True)
class Route:
    kind: ClassVar[str] = "route"

    id: str
    route_table_id: str
    destination: str
    target_id: str
    target_kind: str
    index: int | None = None
    depends_on: tuple[str, ...] = ()


@dataclass(frozen=True)
class RouteTable:
    kind: ClassVar[str] = "route_table"

    id: str
    vpc_id: str
    tier: Tier
    routes: tuple[Route, ...] = ()
    index: int | None = None
    depends_on: tuple[str, ...] = ()
    tags: Mapping[str, str] = field(default_factory=dict)

    @property
    def default_route(self) -> Route | None:
        """The 0.0.0.0/0 route, if any."""
        return next((r for r in self.routes if r.destination == "0.0.0.0/0"), None)


@dataclass(frozen=True)
class RouteTableAssociation:
    kind: ClassVar[str] = "route_table_association"

    id: str
    route_table_id: str
    subnet_id: str
    index: int | None = None
    depends_on: tuple[str, ...] = ()


@dataclass(frozen=True)
class AzBundle:
    """Everything materialized for one availability zone index."""
    index: int
    az: str
    public_subnet: Subnet
    address: ElasticIp
    nat_gateway: NatGateway
    private_subnet: Subnet
    private_route_table: RouteTable
    private_association: RouteTableAssociation
    public_association: RouteTableAssociation

    def entities(self) -> Iterator[Any]:
        yield self.public_subnet
        yield self.address
        yield self.nat_gateway
        yield self.private_subnet
        yield self.private_route_table
        yield from self.private_route_table.routes
        yield self.private_association
        yield self.public_association


@dataclass(frozen=True)
class Topology:
    """Complete, deterministic description of the multi-AZ network."""
    vpc: Vpc
    internet_gateway: InternetGateway
    bundles: tuple[AzBundle, ...]
    public_route_table: RouteTable

    @property
    def zone_count(self) -> int:
        return len(self.bundles)

    @property
    def public_subnets(self) -> list[Subnet]:
        return [b.public_subnet for b in self.bundles]

    @property
    def private_subnets(self) -> list[Subnet]:
        return [b.private_subnet for b in self.bundles]

    @property
    def subnets(self) -> list[Subnet]:
        return self.public_subnets + self.private_subnets

    @property
    def nat_gateways(self) -> list[NatGateway]:
        return [b.nat_gateway for b in self.bundles]

    @property
    def addresses(self) -> list[ElasticIp]:
        return [b.address for b in self.bundles]

    @property
    def private_route_tables(self) -> list[RouteTable]:
        return [b.private_route_table for b in self.bundles]

    @property
    def route_tables(self) -> list[RouteTable]:
        return [self.public_route_table, *self.private_route_tables]

    @property
    def associations(self) -> list[RouteTableAssociation]:
        return [a for b in self.bundles for a in (b.public_association, b.private_association)]

    def entities(self) -> Iterator[Any]:
        """Yield every entity, shared ones first, then bundles in index order."""
        yield self.vpc
        yield self.internet_gateway
        yield self.public_route_table
        yield from self.public_route_table.routes
        for bundle in self.bundles:
            yield from bundle.entities()

    def edges(self) -> list[tuple[str, str]]:
        """(dependent, dependency) pairs across all entities."""
        return [(e.id, dep) for e in self.entities() for dep in e.depends_on]


@dataclass(frozen=True)
class SecurityGroup:
    kind: ClassVar[str] = "security_group"

    id: str
    role: str
    vpc_id: str
    description: str
    depends_on: tuple[str, ...] = ()
    tags: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class SecurityGroupRule:
    """
    One directional rule on one group.

    Rules that reference another group are separate objects from the groups
    themselves, so two groups can point at each other without a cycle.
    """
    kind: ClassVar[str] = "security_group_rule"

    id: str
    group_id: str
    direction: Direction
    protocol: str
    from_port: int | None
    to_port: int | None
    description: str
    cidr_ipv4: str | None = None
    referenced_group_id: str | None = None
    depends_on: tuple[str, ...] = ()


@dataclass(frozen=True)
class Endpoint:
    kind: ClassVar[str] = "endpoint"

    id: str
    service: str
    service_name: str
    endpoint_type: EndpointKind
    vpc_id: str
    route_table_ids: tuple[str, ...] = ()
    subnet_ids: tuple[str, ...] = ()
    security_group_ids: tuple[str, ...] = ()
    private_dns_enabled: bool = False
    port: int | None = None
    depends_on: tuple[str, ...] = ()
    tags: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class SecurityBoundary:
    """Security groups, their rules and the service endpoints they guard."""
    groups: tuple[SecurityGroup, ...]
    rules: tuple[SecurityGroupRule, ...]
    endpoints: tuple[Endpoint, ...]

    def group(self, role: str) -> SecurityGroup:
        for group in self.groups:
            if group.role == role:
                return group
        raise KeyError(role)

    def rules_for(self, group_id: str, direction: Direction | None = None) -> list[SecurityGroupRule]:
        return [
            r for r in self.rules
            if r.group_id == group_id and (direction is None or r.direction is direction)
        ]

    @property
    def gateway_endpoints(self) -> list[Endpoint]:
        return [e for e in self.endpoints if e.endpoint_type is EndpointKind.GATEWAY]

    @property
    def interface_endpoints(self) -> list[Endpoint]:
        return [e for e in self.endpoints if e.endpoint_type is EndpointKind.INTERFACE]

    def entities(self) -> Iterator[Any]:
        yield from self.groups
        yield from self.rules
        yield from self.endpoints


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if is_dataclass(value) and hasattr(value, "id"):
        return value.id
    if isinstance(value, Mapping):
        return {k: _plain(v) for k, v in sorted(value.items())}
    if isinstance(value, (tuple, list)):
        return [_plain(v) for v in value]
    return value


def entity_attributes(entity: Any) -> dict[str, Any]:
    """JSON-ready attributes of an entity (nested entities become their ids)."""
    return {
        f.name: _plain(getattr(entity, f.name))
        for f in fields(entity)
        if f.name not in ("id", "depends_on")
    }
