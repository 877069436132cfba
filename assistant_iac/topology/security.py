"""
Security boundary derivation: endpoints and security groups.

Concepts & Architecture:
1. Gateway endpoints (S3):
   - Modify the route tables directly; free of charge.
   - Bound to EVERY private route table, so every zone reaches S3 without its NAT.
2. Interface endpoints (Secrets Manager, Bedrock, ...):
   - An ENI per subnet, billed per AZ, so placement is capped at min(2, k) private subnets.
   - Each gets its own security group: HTTPS in from the private CIDR blocks only, all egress out.
3. Client/server groups:
   - "app" is the client-reachable group handed to compute, search and storage consumers.
   - "data" guards the database and search cluster.
   - app -> data egress and data <- app ingress are two separate rule objects keyed by
     each other's group id. Neither group references the other at creation time, so there is
     no construction cycle.
"""

from collections import Counter
from typing import Mapping, Sequence

from assistant_iac.configs.constants import (
    ANY_IPV4,
    DATA_TIER_PORTS,
    GATEWAY_ENDPOINT_SERVICES,
    INTERFACE_ENDPOINT_AZ_CAP,
    INTERFACE_ENDPOINT_SERVICES,
    PORTS,
)
from assistant_iac.exceptions import TopologyError
from assistant_iac.topology.models import (
    Direction,
    Endpoint,
    EndpointKind,
    SecurityBoundary,
    SecurityGroup,
    SecurityGroupRule,
    Topology,
)
from assistant_iac.utils.logger import get_logger
from assistant_iac.utils.naming import ResourceNamer
from assistant_iac.utils.tags import create_tags, freeze_tags

logger = get_logger(__name__)

APP_ROLE = "app"
DATA_ROLE = "data"


def endpoint_role(service: str) -> str:
    """Security group role guarding an interface endpoint."""
    return f"{service.replace('.', '-')}-endpoint"


class SecurityBoundaryBuilder:
    """Derives endpoint placement and access-control rules from a Topology."""

    def __init__(
        self,
        namer: ResourceNamer,
        region: str,
        tags: Mapping[str, str] | None = None,
        gateway_services: Sequence[str] = GATEWAY_ENDPOINT_SERVICES,
        interface_services: Sequence[str] = INTERFACE_ENDPOINT_SERVICES,
        data_ports: Sequence[str] = DATA_TIER_PORTS,
    ) -> None:
        self.namer = namer
        self.region = region
        self.tags = dict(tags or {})
        self.gateway_services = tuple(gateway_services)
        self.interface_services = tuple(interface_services)
        self.data_ports = tuple(dict.fromkeys(PORTS[name] for name in data_ports))

    def build(self, topology: Topology) -> SecurityBoundary:
        """
        Build security groups, rules and endpoints for a topology.

        Args:
            topology: Output of TopologySynthesizer

        Returns:
            SecurityBoundary with groups, rules and endpoints in a stable order
        """
        groups: list[SecurityGroup] = []
        rules: list[SecurityGroupRule] = []
        endpoints: list[Endpoint] = []

        self._client_server_groups(topology, groups, rules)

        private_rt_ids = tuple(rt.id for rt in topology.private_route_tables)
        endpoints.extend(
            Endpoint(
                id=self.endpoint_id(service, EndpointKind.GATEWAY),
                service=service,
                service_name=self.service_name(service),
                endpoint_type=EndpointKind.GATEWAY,
                vpc_id=topology.vpc.id,
                route_table_ids=private_rt_ids,
                depends_on=(topology.vpc.id, *private_rt_ids),
                tags=self._tags(self.endpoint_id(service, EndpointKind.GATEWAY)),
            )
            for service in self.gateway_services
        )

        placement = topology.private_subnets[:min(INTERFACE_ENDPOINT_AZ_CAP, topology.zone_count)]
        placement_ids = tuple(s.id for s in placement)
        private_cidrs = [s.cidr for s in topology.private_subnets]
        for service in self.interface_services:
            group = self._endpoint_group(topology, service, private_cidrs, groups, rules)
            endpoint_id = self.endpoint_id(service, EndpointKind.INTERFACE)
            endpoints.append(Endpoint(
                id=endpoint_id,
                service=service,
                service_name=self.service_name(service),
                endpoint_type=EndpointKind.INTERFACE,
                vpc_id=topology.vpc.id,
                subnet_ids=placement_ids,
                security_group_ids=(group.id,),
                private_dns_enabled=True,
                port=PORTS["https"],
                depends_on=(topology.vpc.id, *placement_ids, group.id),
                tags=self._tags(endpoint_id),
            ))

        boundary = SecurityBoundary(
            groups=tuple(groups),
            rules=tuple(rules),
            endpoints=tuple(endpoints),
        )
        verify_boundary(boundary, topology)
        logger.info(
            "Security boundary: %d groups, %d rules, %d endpoints (interface placement %s)",
            len(groups), len(rules), len(endpoints), list(placement_ids),
        )
        return boundary

    def service_name(self, service: str) -> str:
        """Regional AWS service name for an endpoint."""
        return f"com.amazonaws.{self.region}.{service}"

    def endpoint_id(self, service: str, kind: EndpointKind) -> str:
        """Logical id of a service endpoint, e.g. '{prefix}-s3-gateway-endpoint'."""
        return self.namer.name(f"{self._slug(service)}-{kind.value}-endpoint")

    @staticmethod
    def _slug(service: str) -> str:
        return service.replace(".", "-")

    def _tags(self, entity_id: str) -> Mapping[str, str]:
        return freeze_tags(create_tags(self.namer.environment, entity_id), self.tags, {"Name": entity_id})

    def _group(self, topology: Topology, role: str, description: str) -> SecurityGroup:
        group_id = self.namer.name(f"{role}-sg")
        return SecurityGroup(
            id=group_id,
            role=role,
            vpc_id=topology.vpc.id,
            description=description,
            depends_on=(topology.vpc.id,),
            tags=self._tags(group_id),
        )

    def _rule(
        self,
        group: SecurityGroup,
        direction: Direction,
        suffix: str,
        description: str,
        protocol: str = "tcp",
        port: int | None = None,
        cidr_ipv4: str | None = None,
        referenced: SecurityGroup | None = None,
    ) -> SecurityGroupRule:
        depends_on = (group.id,) if referenced is None else (group.id, referenced.id)
        return SecurityGroupRule(
            id=f"{group.id}-{direction.value}-{suffix}",
            group_id=group.id,
            direction=direction,
            protocol=protocol,
            from_port=port,
            to_port=port,
            description=description,
            cidr_ipv4=cidr_ipv4,
            referenced_group_id=referenced.id if referenced else None,
            depends_on=depends_on,
        )

    def _client_server_groups(
        self,
        topology: Topology,
        groups: list[SecurityGroup],
        rules: list[SecurityGroupRule],
    ) -> tuple[SecurityGroup, SecurityGroup]:
        app = self._group(topology, APP_ROLE, "Application clients of the data tier")
        data = self._group(topology, DATA_ROLE, "Database and search cluster")
        groups.extend((app, data))

        for port in self.data_ports:
            rules.append(self._rule(
                app, Direction.EGRESS, f"data-{port}", f"To data tier on {port}",
                port=port, referenced=data,
            ))
            rules.append(self._rule(
                data, Direction.INGRESS, f"app-{port}", f"From app tier on {port}",
                port=port, referenced=app,
            ))

        # Outbound HTTPS reaches endpoints and, through the zone's NAT, external APIs
        rules.append(self._rule(
            app, Direction.EGRESS, "https", "HTTPS to anywhere",
            port=PORTS["https"], cidr_ipv4=ANY_IPV4,
        ))
        return app, data

    def _endpoint_group(
        self,
        topology: Topology,
        service: str,
        private_cidrs: list[str],
        groups: list[SecurityGroup],
        rules: list[SecurityGroupRule],
    ) -> SecurityGroup:
        group = self._group(topology, endpoint_role(service), f"Interface endpoint for {service}")
        groups.append(group)
        port = PORTS["https"]
        for index, cidr in enumerate(private_cidrs):
            rules.append(self._rule(
                group, Direction.INGRESS, f"private-{index}", f"HTTPS from private subnet {index}",
                port=port, cidr_ipv4=cidr,
            ))
        rules.append(self._rule(
            group, Direction.EGRESS, "all", "All outbound traffic",
            protocol="-1", cidr_ipv4=ANY_IPV4,
        ))
        return group


def verify_boundary(boundary: SecurityBoundary, topology: Topology) -> None:
    """
    Check that boundary ids are unique and every edge resolves.

    Raises:
        TopologyError: On a repeated id (within the boundary or shared with the
            topology) or a dependency on an unknown entity
    """
    topology_ids = {entity.id for entity in topology.entities()}
    ids = [entity.id for entity in boundary.entities()]
    duplicates = sorted(
        i for i, n in Counter(ids).items() if n > 1 or i in topology_ids
    )
    if duplicates:
        raise TopologyError(
            "Security boundary ids are not unique", invariant="unique-ids", details={"ids": duplicates},
        )

    known = topology_ids | set(ids)
    for entity in boundary.entities():
        missing = [dep for dep in entity.depends_on if dep not in known]
        if missing:
            raise TopologyError(
                f"{entity.id} depends on unknown entities {missing}",
                invariant="dangling-edge",
                entity_id=entity.id,
            )
