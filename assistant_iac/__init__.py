"""
Pulumi infrastructure-as-code for the AI assistant network.

This package defines the network the assistant backend runs in:
- VPC spread over at least two availability zones
- One public and one private subnet per zone
- One NAT gateway and one private route table per zone (zone-fault isolation)
- S3 gateway endpoint and capped interface endpoints
- Security groups for app, data and endpoints

The database, search cluster, auth and compute stacks consume the published
network contract (VPC id, ordered subnet ids, security group ids).
"""
