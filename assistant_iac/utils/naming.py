"""
Resource naming conventions for consistent AWS resource names.

Follows pattern: {project}-{environment}-{resource}[-{index}]
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ResourceNamer:
    """
    Generates consistent resource names for AWS resources.

    Names double as logical entity ids and Pulumi resource names, so they must
    be a pure function of their arguments.

    Attributes:
        project: Project identifier
        environment: Deployment environment (dev, staging, prod)
    """
    project: str
    environment: str

    @property
    def prefix(self) -> str:
        """Shared prefix for every resource of this stack."""
        return f"{self.project}-{self.environment}"

    def name(self, resource: str) -> str:
        """
        Generate a resource name.

        Args:
            resource: Resource identifier (e.g., 'vpc', 'app-sg')

        Returns:
            Formatted resource name
        """
        return f"{self.prefix}-{resource}"

    def indexed(self, resource: str, index: int) -> str:
        """
        Generate the name of a per-AZ resource.

        Args:
            resource: Resource identifier (e.g., 'nat', 'private-rt')
            index: Availability zone index

        Returns:
            Formatted resource name ending with the AZ index
        """
        return f"{self.prefix}-{resource}-{index}"
