"""
Infrastructure constants for the AI assistant network.

Contains default CIDR blocks, availability zones, ports and endpoint settings.
"""

from typing import Final

PROJECT_NAME: Final[str] = "ai-assistant"

DEFAULT_REGION: Final[str] = "us-east-1"

# VPC Configuration
VPC_CIDR: Final[str] = "10.0.0.0/16"

# Subnet CIDR blocks, one entry per availability zone index
PUBLIC_SUBNET_CIDRS: Final[tuple[str, ...]] = (
    "10.0.1.0/24",
    "10.0.2.0/24",
)
PRIVATE_SUBNET_CIDRS: Final[tuple[str, ...]] = (
    "10.0.10.0/24",
    "10.0.20.0/24",
)

AVAILABILITY_ZONES: Final[tuple[str, ...]] = (
    "us-east-1a",
    "us-east-1b",
)

# High availability floor
MIN_AVAILABILITY_ZONES: Final[int] = 2

# AWS VPC prefix limits
VPC_PREFIX_RANGE: Final[tuple[int, int]] = (16, 28)

# RFC 1918 private address space
PRIVATE_ADDRESS_RANGES: Final[tuple[str, ...]] = (
    "10.0.0.0/8",
    "172.16.0.0/12",
    "192.168.0.0/16",
)

ANY_IPV4: Final[str] = "0.0.0.0/0"

# Default tags applied to all resources
DEFAULT_TAGS: Final[dict[str, str]] = {
    "Project": PROJECT_NAME,
    "ManagedBy": "pulumi",
}

# Port configurations
PORTS: Final[dict[str, int]] = {
    "https": 443,
    "mysql": 3306,
    "opensearch": 443,
}

# Ports the client (app) group may open towards the data group
DATA_TIER_PORTS: Final[tuple[str, ...]] = ("mysql", "opensearch")

# Service endpoints
GATEWAY_ENDPOINT_SERVICES: Final[tuple[str, ...]] = ("s3",)
INTERFACE_ENDPOINT_SERVICES: Final[tuple[str, ...]] = ("secretsmanager",)

# Interface endpoints are billed per AZ; cap the number of subnets they occupy
INTERFACE_ENDPOINT_AZ_CAP: Final[int] = 2

# Search clusters are placed in at most this many private subnets
SEARCH_SUBNET_CAP: Final[int] = 2
