"""
Networking components for VPC infrastructure.

Components:
- VpcComponent: VPC, per-AZ subnets, NAT gateways, route tables
- SecurityGroupsComponent: app/data groups and per-endpoint groups with standalone rules
- VpcEndpointsComponent: S3 gateway endpoint and interface endpoints
"""

from assistant_iac.components.networking.vpc import VpcComponent, VpcOutputs
from assistant_iac.components.networking.security_groups import SecurityGroupsComponent, SecurityGroupOutputs
from assistant_iac.components.networking.vpc_endpoints import VpcEndpointsComponent

__all__ = [
    "VpcComponent",
    "VpcOutputs",
    "SecurityGroupsComponent",
    "SecurityGroupOutputs",
    "VpcEndpointsComponent",
]
