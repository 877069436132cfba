"""
Base configuration dataclasses for environment and network settings.

Provides type-safe configuration structure loaded from Pulumi stack configs.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Sequence


@dataclass(frozen=True)
class NetworkSpec:
    """
    Caller-supplied description of the multi-AZ network.

    Sequences are stored as tuples and tags as a read-only mapping, so a spec
    cannot change once it has been handed to synthesis. Values are kept as
    given: validation happens in ConfigValidator, never here.

    Attributes:
        vpc_cidr: VPC address block (e.g. '10.0.0.0/16')
        az_list: Ordered, distinct availability zone names
        public_cidrs: Public subnet blocks, one per AZ index
        private_cidrs: Private subnet blocks, one per AZ index
        tags: Tags applied to every entity
        domain_name: Optional application domain
    """
    vpc_cidr: str
    az_list: Sequence[str]
    public_cidrs: Sequence[str]
    private_cidrs: Sequence[str]
    tags: Mapping[str, str] = field(default_factory=dict)
    domain_name: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "az_list", tuple(self.az_list))
        object.__setattr__(self, "public_cidrs", tuple(self.public_cidrs))
        object.__setattr__(self, "private_cidrs", tuple(self.private_cidrs))
        object.__setattr__(self, "tags", MappingProxyType(dict(self.tags)))

    @property
    def zone_count(self) -> int:
        """Number of AZ indices that can actually be materialized."""
        return min(len(self.az_list), len(self.public_cidrs), len(self.private_cidrs))


@dataclass(frozen=True)
class EnvironmentConfig:
    """
    Environment-specific configuration for infrastructure deployment.

    Attributes:
        environment: Deployment environment (dev, staging, prod)
        region: AWS region the stack deploys into
        network: Network layout for this environment
        interface_endpoints: Services reached through interface endpoints
        domain: Base domain for the application, if any
    """
    environment: str
    region: str
    network: NetworkSpec
    interface_endpoints: tuple[str, ...]
    domain: str | None = None

    @property
    def is_production(self) -> bool:
        """Check if this is a production environment."""
        return self.environment == "prod"

    def get_tags(self) -> dict[str, str]:
        """Get environment-specific tags."""
        return {
            "Environment": self.environment,
        }
