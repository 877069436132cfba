"""
Configuration module for Pulumi infrastructure.

Provides type-safe configuration loading from Pulumi stack config files.
"""

from assistant_iac.configs.base import EnvironmentConfig, NetworkSpec
from assistant_iac.configs.environment import get_config
from assistant_iac.configs.constants import (
    VPC_CIDR,
    PUBLIC_SUBNET_CIDRS,
    PRIVATE_SUBNET_CIDRS,
    AVAILABILITY_ZONES,
    DEFAULT_TAGS,
)

__all__ = [
    "EnvironmentConfig",
    "NetworkSpec",
    "get_config",
    "VPC_CIDR",
    "PUBLIC_SUBNET_CIDRS",
    "PRIVATE_SUBNET_CIDRS",
    "AVAILABILITY_ZONES",
    "DEFAULT_TAGS",
]
