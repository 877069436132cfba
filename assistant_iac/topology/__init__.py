"""
Pure network planning layer.

Data flows strictly forward:
NetworkSpec -> ConfigValidator -> TopologySynthesizer -> SecurityBoundaryBuilder -> OutputPublisher

Nothing here talks to AWS; the Pulumi components in assistant_iac.components
materialize what this package describes.
"""

from assistant_iac.topology.models import (
    AzBundle,
    Endpoint,
    EndpointKind,
    SecurityBoundary,
    SecurityGroup,
    SecurityGroupRule,
    Subnet,
    Tier,
    Topology,
)
from assistant_iac.topology.validator import ConfigValidator, Violation
from assistant_iac.topology.synthesizer import TopologySynthesizer, verify_topology
from assistant_iac.topology.security import SecurityBoundaryBuilder
from assistant_iac.topology.publisher import NetworkContract, OutputPublisher
from assistant_iac.topology.planner import (
    ChangeSet,
    StateSnapshot,
    creation_waves,
    diff,
    retry_scope,
    snapshot,
    teardown_order,
)

__all__ = [
    "AzBundle",
    "Endpoint",
    "EndpointKind",
    "SecurityBoundary",
    "SecurityGroup",
    "SecurityGroupRule",
    "Subnet",
    "Tier",
    "Topology",
    "ConfigValidator",
    "Violation",
    "TopologySynthesizer",
    "verify_topology",
    "SecurityBoundaryBuilder",
    "NetworkContract",
    "OutputPublisher",
    "ChangeSet",
    "StateSnapshot",
    "creation_waves",
    "diff",
    "retry_scope",
    "snapshot",
    "teardown_order",
]
