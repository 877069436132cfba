"""Pytest fixtures for network infrastructure tests."""

import pytest

from assistant_iac.configs.base import NetworkSpec
from assistant_iac.topology.security import SecurityBoundaryBuilder
from assistant_iac.topology.synthesizer import TopologySynthesizer
from assistant_iac.utils.naming import ResourceNamer

REGION = "us-east-1"


def two_zone_spec(**overrides) -> NetworkSpec:
    """The reference two-zone layout."""
    values = dict(
        vpc_cidr="10.0.0.0/16",
        az_list=["az-a", "az-b"],
        public_cidrs=["10.0.1.0/24", "10.0.2.0/24"],
        private_cidrs=["10.0.10.0/24", "10.0.20.0/24"],
        tags={"Owner": "platform"},
    )
    values.update(overrides)
    return NetworkSpec(**values)


def three_zone_spec(**overrides) -> NetworkSpec:
    values = dict(
        vpc_cidr="10.0.0.0/16",
        az_list=["az-a", "az-b", "az-c"],
        public_cidrs=["10.0.1.0/24", "10.0.2.0/24", "10.0.3.0/24"],
        private_cidrs=["10.0.10.0/24", "10.0.20.0/24", "10.0.30.0/24"],
    )
    values.update(overrides)
    return NetworkSpec(**values)


@pytest.fixture
def namer() -> ResourceNamer:
    return ResourceNamer(project="ai-assistant", environment="test")


@pytest.fixture
def synthesizer(namer):
    return TopologySynthesizer(namer)


@pytest.fixture
def topology(synthesizer):
    """Two-zone topology from the reference layout."""
    return synthesizer.synthesize(two_zone_spec())


@pytest.fixture
def topology_three(synthesizer):
    """Three-zone topology."""
    return synthesizer.synthesize(three_zone_spec())


@pytest.fixture
def boundary_builder(namer):
    return SecurityBoundaryBuilder(namer, region=REGION)


@pytest.fixture
def two_zones():
    """Factory for the two-zone spec; keyword overrides replace fields."""
    return two_zone_spec


@pytest.fixture
def three_zones():
    """Factory for the three-zone spec."""
    return three_zone_spec
