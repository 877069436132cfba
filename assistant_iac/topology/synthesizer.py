"""
Multi-AZ network topology synthesis.

Steps & Architecture:
1. VPC plus an attached Internet Gateway (IGW).
2. Per availability zone index i (one AzBundle each):
   - Public subnet i (auto-assigned public IPs)
   - Elastic IP i, then NAT gateway i inside public subnet i
   - Private subnet i
   - Private route table i: 0.0.0.0/0 -> NAT gateway i, associated with private subnet i only
3. One shared public route table: 0.0.0.0/0 -> IGW, associated with every public subnet.

Why one NAT and one private route table per zone?
- Fault isolation: losing zone i's NAT only cuts zone i's private egress.
- Cost: private traffic never crosses zones to reach a shared NAT.

The synthesizer is a pure function of (namer, tags, spec). It performs no I/O,
so the same input always yields the same ids in the same order.
"""

import ipaddress
from collections import Counter
from itertools import combinations
from typing import Mapping

from assistant_iac.configs.base import NetworkSpec
from assistant_iac.configs.constants import ANY_IPV4, MIN_AVAILABILITY_ZONES
from assistant_iac.exceptions import TopologyError
from assistant_iac.topology.models import (
    AzBundle,
    ElasticIp,
    InternetGateway,
    NatGateway,
    Route,
    RouteTable,
    RouteTableAssociation,
    Subnet,
    Tier,
    Topology,
    Vpc,
)
from assistant_iac.utils.logger import get_logger
from assistant_iac.utils.naming import ResourceNamer
from assistant_iac.utils.tags import create_tags, freeze_tags

logger = get_logger(__name__)


class TopologySynthesizer:
    """
    Derives VPC, subnets, NAT gateways and route tables from a NetworkSpec.

    Attributes:
        namer: Produces the logical id of every entity
        tags: Extra tags merged into every entity's tag set
    """

    def __init__(self, namer: ResourceNamer, tags: Mapping[str, str] | None = None) -> None:
        self.namer = namer
        self.tags = dict(tags or {})

    def synthesize(self, spec: NetworkSpec) -> Topology:
        """
        Build the topology for a validated spec.

        Args:
            spec: NetworkSpec that passed ConfigValidator

        Returns:
            Topology with one AzBundle per materialized zone index

        Raises:
            TopologyError: If fewer than two zones can be materialized, or the
                result breaks one of the topology invariants
        """
        zone_count = spec.zone_count
        if zone_count < MIN_AVAILABILITY_ZONES:
            raise TopologyError(
                f"Refusing to build a {zone_count}-zone network; at least "
                f"{MIN_AVAILABILITY_ZONES} zones are required",
                invariant="high-availability",
                details={"zone_count": zone_count},
            )

        vpc_id = self.namer.name("vpc")
        vpc = Vpc(
            id=vpc_id,
            cidr=spec.vpc_cidr,
            tags=self._tags(spec, vpc_id),
        )

        igw_id = self.namer.name("igw")
        igw = InternetGateway(
            id=igw_id,
            vpc_id=vpc.id,
            depends_on=(vpc.id,),
            tags=self._tags(spec, igw_id),
        )

        public_rt = self._public_route_table(spec, vpc, igw)
        bundles = tuple(
            self._bundle(spec, index, vpc, igw, public_rt)
            for index in range(zone_count)
        )

        topology = Topology(
            vpc=vpc,
            internet_gateway=igw,
            bundles=bundles,
            public_route_table=public_rt,
        )
        verify_topology(topology)

        logger.info(
            "Synthesized topology %s: %d zones, %d subnets, %d NAT gateways",
            vpc.id, topology.zone_count, len(topology.subnets), len(topology.nat_gateways),
        )
        return topology

    def _tags(self, spec: NetworkSpec, entity_id: str, **extra: str) -> Mapping[str, str]:
        base = create_tags(self.namer.environment, entity_id, **extra)
        return freeze_tags(base, self.tags, spec.tags, {"Name": entity_id})

    def _public_route_table(self, spec: NetworkSpec, vpc: Vpc, igw: InternetGateway) -> RouteTable:
        rt_id = self.namer.name("public-rt")
        default_route = Route(
            id=self.namer.name("public-default-route"),
            route_table_id=rt_id,
            destination=ANY_IPV4,
            target_id=igw.id,
            target_kind=igw.kind,
            depends_on=(rt_id, igw.id),
        )
        return RouteTable(
            id=rt_id,
            vpc_id=vpc.id,
            tier=Tier.PUBLIC,
            routes=(default_route,),
            depends_on=(vpc.id,),
            tags=self._tags(spec, rt_id, Tier=Tier.PUBLIC.value),
        )

    def _bundle(
        self,
        spec: NetworkSpec,
        index: int,
        vpc: Vpc,
        igw: InternetGateway,
        public_rt: RouteTable,
    ) -> AzBundle:
        az = spec.az_list[index]
        indexed = self.namer.indexed

        public_id = indexed("public-subnet", index)
        public_subnet = Subnet(
            id=public_id,
            vpc_id=vpc.id,
            cidr=spec.public_cidrs[index],
            az=az,
            tier=Tier.PUBLIC,
            index=index,
            map_public_ip_on_launch=True,
            depends_on=(vpc.id,),
            tags=self._tags(spec, public_id, Tier=Tier.PUBLIC.value),
        )

        # An EIP in a VPC can only be allocated once the IGW is attached
        eip_id = indexed("nat-eip", index)
        address = ElasticIp(
            id=eip_id,
            index=index,
            depends_on=(igw.id,),
            tags=self._tags(spec, eip_id),
        )

        nat_id = indexed("nat", index)
        nat = NatGateway.place(
            nat_id,
            public_subnet=public_subnet,
            address=address,
            internet_gateway=igw,
            tags=self._tags(spec, nat_id),
        )

        private_id = indexed("private-subnet", index)
        private_subnet = Subnet(
            id=private_id,
            vpc_id=vpc.id,
            cidr=spec.private_cidrs[index],
            az=az,
            tier=Tier.PRIVATE,
            index=index,
            depends_on=(vpc.id,),
            tags=self._tags(spec, private_id, Tier=Tier.PRIVATE.value),
        )

        rt_id = indexed("private-rt", index)
        default_route = Route(
            id=indexed("private-default-route", index),
            route_table_id=rt_id,
            destination=ANY_IPV4,
            target_id=nat.id,
            target_kind=nat.kind,
            index=index,
            depends_on=(rt_id, nat.id),
        )
        private_rt = RouteTable(
            id=rt_id,
            vpc_id=vpc.id,
            tier=Tier.PRIVATE,
            routes=(default_route,),
            index=index,
            depends_on=(vpc.id,),
            tags=self._tags(spec, rt_id, Tier=Tier.PRIVATE.value),
        )

        return AzBundle(
            index=index,
            az=az,
            public_subnet=public_subnet,
            address=address,
            nat_gateway=nat,
            private_subnet=private_subnet,
            private_route_table=private_rt,
            private_association=RouteTableAssociation(
                id=indexed("private-rt-assoc", index),
                route_table_id=private_rt.id,
                subnet_id=private_subnet.id,
                index=index,
                depends_on=(private_rt.id, private_subnet.id),
            ),
            public_association=RouteTableAssociation(
                id=indexed("public-rt-assoc", index),
                route_table_id=public_rt.id,
                subnet_id=public_subnet.id,
                index=index,
                depends_on=(public_rt.id, public_subnet.id),
            ),
        )


def verify_topology(topology: Topology) -> None:
    """
    Re-check every guarantee the synthesizer makes.

    Raises:
        TopologyError: Naming the first invariant found broken
    """
    k = topology.zone_count
    if k < MIN_AVAILABILITY_ZONES:
        raise TopologyError(f"Topology has {k} zone(s)", invariant="high-availability")

    counts = {
        "public_subnets": len(topology.public_subnets),
        "private_subnets": len(topology.private_subnets),
        "nat_gateways": len(topology.nat_gateways),
        "private_route_tables": len(topology.private_route_tables),
    }
    if any(count != k for count in counts.values()):
        raise TopologyError(
            f"Per-zone entity counts differ from zone count {k}",
            invariant="per-zone-counts",
            details=counts,
        )

    ids = [entity.id for entity in topology.entities()]
    duplicates = sorted(i for i, n in Counter(ids).items() if n > 1)
    if duplicates:
        raise TopologyError(
            "Entity ids are not unique", invariant="unique-ids", details={"ids": duplicates},
        )
    known = set(ids)
    for dependent, dependency in topology.edges():
        if dependency not in known:
            raise TopologyError(
                f"{dependent} depends on unknown entity {dependency}",
                invariant="dangling-edge",
                entity_id=dependent,
            )

    vpc_block = _network(topology.vpc.id, topology.vpc.cidr)
    blocks = [(s.id, _network(s.id, s.cidr)) for s in topology.subnets]
    for subnet_id, block in blocks:
        if not block.subnet_of(vpc_block):
            raise TopologyError(
                f"Subnet {block} is outside VPC {vpc_block}",
                invariant="subnet-containment",
                entity_id=subnet_id,
            )
    for (id_a, block_a), (id_b, block_b) in combinations(blocks, 2):
        if block_a.overlaps(block_b):
            raise TopologyError(
                f"Subnet {block_b} overlaps {id_a} ({block_a})",
                invariant="subnet-disjoint",
                entity_id=id_b,
            )

    igw = topology.internet_gateway
    public_rt = topology.public_route_table
    public_route = public_rt.default_route
    if public_route is None or public_route.target_id != igw.id:
        raise TopologyError(
            "Public route table must send default traffic to the internet gateway",
            invariant="public-egress",
            entity_id=public_rt.id,
        )

    for index, bundle in enumerate(topology.bundles):
        if bundle.index != index:
            raise TopologyError(
                f"Bundle at position {index} carries index {bundle.index}",
                invariant="index-order",
            )
        nat = bundle.nat_gateway
        if nat.subnet_id != bundle.public_subnet.id or nat.index != index:
            raise TopologyError(
                f"NAT gateway {nat.id} is not placed in public subnet {index}",
                invariant="nat-placement",
                entity_id=nat.id,
            )
        route = bundle.private_route_table.default_route
        if route is None or route.target_id != nat.id:
            raise TopologyError(
                f"Private route table {index} must route default traffic to NAT gateway {index}",
                invariant="nat-isolation",
                entity_id=bundle.private_route_table.id,
            )
        association = bundle.private_association
        if (association.subnet_id != bundle.private_subnet.id
                or association.route_table_id != bundle.private_route_table.id):
            raise TopologyError(
                f"Private subnet {index} is not bound to private route table {index}",
                invariant="association-isolation",
                entity_id=association.id,
            )
        if bundle.public_association.route_table_id != public_rt.id:
            raise TopologyError(
                f"Public subnet {index} is not bound to the shared public route table",
                invariant="public-association",
                entity_id=bundle.public_association.id,
            )


def _network(entity_id: str, cidr: str) -> ipaddress.IPv4Network:
    try:
        return ipaddress.IPv4Network(cidr)
    except ValueError as e:
        raise TopologyError(
            f"{entity_id} carries unparseable block {cidr!r}",
            invariant="cidr-format",
            entity_id=entity_id,
        ) from e
