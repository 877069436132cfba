"""
VPC Component Resource for the multi-AZ network.

Materializes a synthesized Topology with pulumi_aws. Every entity becomes one
AWS resource named by the entity id, so Pulumi state is keyed by the same
stable ids the synthesizer produces and an unchanged spec previews as
"no changes".

Resources per Topology:
1. VPC + Internet Gateway (shared).
2. Public route table: 0.0.0.0/0 -> IGW (shared).
3. Per AZ index i:
   - Public subnet i, Elastic IP i, NAT gateway i (in public subnet i)
   - Private subnet i, private route table i: 0.0.0.0/0 -> NAT gateway i
   - Associations: public subnet i -> public RT, private subnet i -> private RT i

Creation order comes from the entity edges (ResourceOptions.depends_on), not
from the order of statements.
"""

from dataclasses import dataclass
from typing import Any, Callable

import pulumi
import pulumi_aws as aws

from assistant_iac.topology.models import (
    ElasticIp,
    InternetGateway,
    NatGateway,
    Route,
    RouteTable,
    RouteTableAssociation,
    Subnet,
    Topology,
    Vpc,
)


@dataclass
class VpcOutputs:
    """Output values from VPC component, ordered by AZ index."""
    vpc_id: pulumi.Output[str]
    public_subnet_ids: list[pulumi.Output[str]]
    private_subnet_ids: list[pulumi.Output[str]]
    nat_gateway_ids: list[pulumi.Output[str]]
    nat_public_ips: list[pulumi.Output[str]]
    public_route_table_id: pulumi.Output[str]
    private_route_table_ids: list[pulumi.Output[str]]


class VpcComponent(pulumi.ComponentResource):
    """
    VPC component with one NAT gateway and one private route table per AZ.

    Attributes:
        resources: Entity id -> created AWS resource
    """

    def __init__(
        self,
        name: str,
        topology: Topology,
        opts: pulumi.ResourceOptions | None = None,
    ) -> None:
        super().__init__("assistant:networking:Vpc", name, None, opts)
        self.topology = topology
        self.resources: dict[str, pulumi.CustomResource] = {}

        builders: dict[str, Callable[[Any], pulumi.CustomResource]] = {
            Vpc.kind: self._vpc,
            InternetGateway.kind: self._internet_gateway,
            Subnet.kind: self._subnet,
            ElasticIp.kind: self._address,
            NatGateway.kind: self._nat_gateway,
            RouteTable.kind: self._route_table,
            Route.kind: self._route,
            RouteTableAssociation.kind: self._association,
        }
        for entity in topology.entities():
            self.resources[entity.id] = builders[entity.kind](entity)

        pulumi.log.info(
            f"VPC {topology.vpc.id}: {len(self.resources)} resources across "
            f"{topology.zone_count} availability zones"
        )

        outputs = self.get_outputs()
        self.register_outputs({
            "vpc_id": outputs.vpc_id,
            "public_subnet_ids": outputs.public_subnet_ids,
            "private_subnet_ids": outputs.private_subnet_ids,
            "nat_gateway_ids": outputs.nat_gateway_ids,
            "private_route_table_ids": outputs.private_route_table_ids,
        })

    def _opts(self, entity: Any) -> pulumi.ResourceOptions:
        return pulumi.ResourceOptions(
            parent=self,
            depends_on=[self.resources[dep] for dep in entity.depends_on],
        )

    def _id(self, entity_id: str) -> pulumi.Output[str]:
        return self.resources[entity_id].id

    def _vpc(self, vpc: Vpc) -> aws.ec2.Vpc:
        return aws.ec2.Vpc(
            vpc.id,
            cidr_block=vpc.cidr,
            enable_dns_hostnames=vpc.enable_dns_hostnames,
            enable_dns_support=vpc.enable_dns_support,
            tags=dict(vpc.tags),
            opts=self._opts(vpc),
        )

    def _internet_gateway(self, igw: InternetGateway) -> aws.ec2.InternetGateway:
        return aws.ec2.InternetGateway(
            igw.id,
            vpc_id=self._id(igw.vpc_id),
            tags=dict(igw.tags),
            opts=self._opts(igw),
        )

    def _subnet(self, subnet: Subnet) -> aws.ec2.Subnet:
        return aws.ec2.Subnet(
            subnet.id,
            vpc_id=self._id(subnet.vpc_id),
            cidr_block=subnet.cidr,
            availability_zone=subnet.az,
            map_public_ip_on_launch=subnet.map_public_ip_on_launch,
            tags=dict(subnet.tags),
            opts=self._opts(subnet),
        )

    def _address(self, address: ElasticIp) -> aws.ec2.Eip:
        return aws.ec2.Eip(
            address.id,
            domain="vpc",
            tags=dict(address.tags),
            opts=self._opts(address),
        )

    def _nat_gateway(self, nat: NatGateway) -> aws.ec2.NatGateway:
        return aws.ec2.NatGateway(
            nat.id,
            subnet_id=self._id(nat.subnet_id),
            allocation_id=self._id(nat.allocation_id),
            tags=dict(nat.tags),
            opts=self._opts(nat),
        )

    def _route_table(self, route_table: RouteTable) -> aws.ec2.RouteTable:
        # Routes are separate resources so each one carries its own edge
        return aws.ec2.RouteTable(
            route_table.id,
            vpc_id=self._id(route_table.vpc_id),
            tags=dict(route_table.tags),
            opts=self._opts(route_table),
        )

    def _route(self, route: Route) -> aws.ec2.Route:
        target = self._id(route.target_id)
        return aws.ec2.Route(
            route.id,
            route_table_id=self._id(route.route_table_id),
            destination_cidr_block=route.destination,
            gateway_id=target if route.target_kind == InternetGateway.kind else None,
            nat_gateway_id=target if route.target_kind == NatGateway.kind else None,
            opts=self._opts(route),
        )

    def _association(self, association: RouteTableAssociation) -> aws.ec2.RouteTableAssociation:
        return aws.ec2.RouteTableAssociation(
            association.id,
            subnet_id=self._id(association.subnet_id),
            route_table_id=self._id(association.route_table_id),
            opts=self._opts(association),
        )

    @property
    def nat_gateways(self) -> list[aws.ec2.NatGateway]:
        return [self.resources[n.id] for n in self.topology.nat_gateways]

    @property
    def private_routes(self) -> list[aws.ec2.Route]:
        return [self.resources[rt.default_route.id] for rt in self.topology.private_route_tables]

    def resource_id(self, entity_id: str) -> pulumi.Output[str]:
        """Provider id of the resource created for an entity."""
        return self._id(entity_id)

    def get_outputs(self) -> VpcOutputs:
        """Get VPC output values."""
        t = self.topology
        return VpcOutputs(
            vpc_id=self._id(t.vpc.id),
            public_subnet_ids=[self._id(s.id) for s in t.public_subnets],
            private_subnet_ids=[self._id(s.id) for s in t.private_subnets],
            nat_gateway_ids=[self._id(n.id) for n in t.nat_gateways],
            nat_public_ips=[self.resources[a.id].public_ip for a in t.addresses],
            public_route_table_id=self._id(t.public_route_table.id),
            private_route_table_ids=[self._id(rt.id) for rt in t.private_route_tables],
        )
