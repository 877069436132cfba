"""
Security Groups Component for Network Access Control.

Architectural Steps & Flow:
1. Create "Shell" Security Groups:
   - Every group (app, data, one per interface endpoint) is created without inline rules,
     so it exists and can be referenced by ID before any rule mentions it.

2. Define Rules (Micro-Segmentation):
   - Each rule is its own SecurityGroupIngressRule / SecurityGroupEgressRule resource.
   - app -> data (egress) and data <- app (ingress) are two rules, one per group. A single
     bidirectional declaration would make each group wait on the other.

3. Specific Access Patterns:
   - Data: accepts the data ports ONLY from the app group.
   - Endpoints: accept HTTPS ONLY from the private subnet CIDR blocks; egress is open.

4. Stateful Nature:
   - Security Groups are stateful. Allowing an inbound request AUTOMATICALLY allows the reply.
"""

from dataclasses import dataclass
from typing import Mapping

import pulumi
import pulumi_aws as aws

from assistant_iac.topology.models import Direction, SecurityBoundary, SecurityGroupRule


@dataclass
class SecurityGroupOutputs:
    """Output values from security groups component."""
    group_ids: dict[str, pulumi.Output[str]]


class SecurityGroupsComponent(pulumi.ComponentResource):
    """
    Security groups and their rules, taken from a SecurityBoundary.

    Attributes:
        resources: Entity id -> created group or rule resource
    """

    def __init__(
        self,
        name: str,
        boundary: SecurityBoundary,
        dependencies: Mapping[str, pulumi.CustomResource],
        opts: pulumi.ResourceOptions | None = None,
    ) -> None:
        super().__init__("assistant:networking:SecurityGroups", name, None, opts)
        self.boundary = boundary
        self.resources: dict[str, pulumi.CustomResource] = {}
        self._dependencies = dependencies

        for group in boundary.groups:
            self.resources[group.id] = aws.ec2.SecurityGroup(
                group.id,
                description=group.description,
                vpc_id=self._lookup(group.vpc_id).id,
                tags=dict(group.tags),
                opts=self._opts(group.depends_on),
            )

        for rule in boundary.rules:
            self.resources[rule.id] = self._create_rule(rule)

        self.register_outputs({
            "group_ids": self.get_outputs().group_ids,
        })

    def _lookup(self, entity_id: str) -> pulumi.CustomResource:
        if entity_id in self.resources:
            return self.resources[entity_id]
        return self._dependencies[entity_id]

    def _opts(self, depends_on: tuple[str, ...]) -> pulumi.ResourceOptions:
        return pulumi.ResourceOptions(
            parent=self,
            depends_on=[self._lookup(dep) for dep in depends_on],
        )

    def _create_rule(self, rule: SecurityGroupRule) -> pulumi.CustomResource:
        """Create one ingress or egress rule."""
        rule_cls = (
            aws.vpc.SecurityGroupIngressRule
            if rule.direction is Direction.INGRESS
            else aws.vpc.SecurityGroupEgressRule
        )
        referenced = (
            self._lookup(rule.referenced_group_id).id
            if rule.referenced_group_id
            else None
        )
        return rule_cls(
            rule.id,
            security_group_id=self._lookup(rule.group_id).id,
            ip_protocol=rule.protocol,
            from_port=rule.from_port,
            to_port=rule.to_port,
            cidr_ipv4=rule.cidr_ipv4,
            referenced_security_group_id=referenced,
            description=rule.description,
            opts=self._opts(rule.depends_on),
        )

    def resource_id(self, entity_id: str) -> pulumi.Output[str]:
        """Provider id of the resource created for an entity."""
        return self.resources[entity_id].id

    def get_outputs(self) -> SecurityGroupOutputs:
        """Get security group output values."""
        return SecurityGroupOutputs(
            group_ids={g.role: self.resources[g.id].id for g in self.boundary.groups},
        )
