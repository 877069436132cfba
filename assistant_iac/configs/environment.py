"""
Environment configuration loader.

Loads configuration from Pulumi stack config files. Absent keys fall back to
the defaults in constants.py; present keys are passed through untouched and
checked later by ConfigValidator.
"""

import pulumi

from assistant_iac.configs.base import EnvironmentConfig, NetworkSpec
from assistant_iac.configs.constants import (
    AVAILABILITY_ZONES,
    DEFAULT_REGION,
    INTERFACE_ENDPOINT_SERVICES,
    PRIVATE_SUBNET_CIDRS,
    PUBLIC_SUBNET_CIDRS,
    VPC_CIDR,
)


def _get_list(config: pulumi.Config, key: str, default: tuple[str, ...]) -> tuple[str, ...]:
    value = config.get_object(key)
    if value is None:
        return default
    return tuple(str(item) for item in value)


def get_config() -> EnvironmentConfig:
    """
    Load environment configuration from Pulumi stack config.

    Returns:
        EnvironmentConfig: Configuration object (network not yet validated)

    Raises:
        pulumi.ConfigMissingError: If required config values are missing
    """
    config = pulumi.Config()
    domain = config.get("domain")

    network = NetworkSpec(
        vpc_cidr=config.get("vpc_cidr") or VPC_CIDR,
        az_list=_get_list(config, "availability_zones", AVAILABILITY_ZONES),
        public_cidrs=_get_list(config, "public_subnet_cidrs", PUBLIC_SUBNET_CIDRS),
        private_cidrs=_get_list(config, "private_subnet_cidrs", PRIVATE_SUBNET_CIDRS),
        tags=config.get_object("tags") or {},
        domain_name=domain,
    )

    return EnvironmentConfig(
        environment=config.require("environment"),
        region=config.get("region") or DEFAULT_REGION,
        network=network,
        interface_endpoints=_get_list(config, "interface_endpoints", INTERFACE_ENDPOINT_SERVICES),
        domain=domain,
    )
