"""
Pulumi component resources for the AI assistant network.

Each submodule provides reusable ComponentResource classes:
- networking: VPC, subnets, NAT gateways, security groups, VPC endpoints
"""
