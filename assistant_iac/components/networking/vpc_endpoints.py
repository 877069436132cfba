"""
VPC Endpoints Component for Private AWS Service Access.

Concepts & Architecture:
1. The Problem: private subnets should reach AWS services without crossing a NAT gateway.
   - Solution: VPC Endpoints.

2. Types of Endpoints Used:
   A. Gateway Endpoints (The "Portal"):
      - Used for: S3.
      - Mechanism: Adds routes to the route tables (every private route table, every zone).
      - Cost: FREE.

   B. Interface Endpoints (The "Tunnel"):
      - Used for: Secrets Manager (and e.g. bedrock-runtime when configured).
      - Mechanism: An ENI with a private IP INSIDE each placement subnet.
      - DNS: "private_dns_enabled=True" points the standard service hostname at the ENI.
      - Cost: Paid per AZ, so placement is capped at two private subnets.
      - Security: protected by the endpoint's own security group.
"""

from typing import Mapping

import pulumi
import pulumi_aws as aws

from assistant_iac.topology.models import Endpoint, EndpointKind, SecurityBoundary


class VpcEndpointsComponent(pulumi.ComponentResource):
    """
    VPC endpoints for private AWS service access.

    Attributes:
        resources: Entity id -> created endpoint
    """

    def __init__(
        self,
        name: str,
        boundary: SecurityBoundary,
        dependencies: Mapping[str, pulumi.CustomResource],
        opts: pulumi.ResourceOptions | None = None,
    ) -> None:
        super().__init__("assistant:networking:VpcEndpoints", name, None, opts)
        self._dependencies = dependencies
        self.resources: dict[str, aws.ec2.VpcEndpoint] = {}

        for endpoint in boundary.endpoints:
            self.resources[endpoint.id] = self._create_endpoint(endpoint)

        self.register_outputs({
            f"{e.service}_{e.endpoint_type.value}_endpoint_id": self.resources[e.id].id
            for e in boundary.endpoints
        })

    def _ids(self, entity_ids: tuple[str, ...]) -> list[pulumi.Output[str]] | None:
        return [self._dependencies[i].id for i in entity_ids] or None

    def _create_endpoint(self, endpoint: Endpoint) -> aws.ec2.VpcEndpoint:
        interface = endpoint.endpoint_type is EndpointKind.INTERFACE
        return aws.ec2.VpcEndpoint(
            endpoint.id,
            vpc_id=self._dependencies[endpoint.vpc_id].id,
            service_name=endpoint.service_name,
            vpc_endpoint_type="Interface" if interface else "Gateway",
            route_table_ids=self._ids(endpoint.route_table_ids),
            subnet_ids=self._ids(endpoint.subnet_ids),
            security_group_ids=self._ids(endpoint.security_group_ids),
            private_dns_enabled=endpoint.private_dns_enabled if interface else None,
            tags=dict(endpoint.tags),
            opts=pulumi.ResourceOptions(
                parent=self,
                depends_on=[self._dependencies[d] for d in endpoint.depends_on],
            ),
        )

    def resource_id(self, entity_id: str) -> pulumi.Output[str]:
        """Provider id of the resource created for an entity."""
        return self.resources[entity_id].id
