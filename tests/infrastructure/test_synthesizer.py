"""
Tests for multi-AZ topology synthesis.

Validates:
1. Entity counts per zone count
2. Same-index NAT wiring (zone-fault isolation)
3. Subnet disjointness and containment
4. Determinism across runs
5. Invariant re-checks on corrupted topologies
"""

import ipaddress
from dataclasses import replace
from itertools import combinations

import pytest

from assistant_iac.exceptions import TopologyError
from assistant_iac.topology.models import ElasticIp, NatGateway, Tier
from assistant_iac.topology.planner import snapshot
from assistant_iac.topology.synthesizer import verify_topology


class TestEntityCounts:
    """k zones -> k of every per-zone entity, one of every shared one."""

    @pytest.mark.parametrize("fixture_name, k", [("topology", 2), ("topology_three", 3)])
    def test_counts(self, request, fixture_name, k):
        topology = request.getfixturevalue(fixture_name)

        assert len(topology.public_subnets) == k
        assert len(topology.private_subnets) == k
        assert len(topology.nat_gateways) == k
        assert len(topology.private_route_tables) == k
        assert len(topology.route_tables) == k + 1
        assert topology.internet_gateway.vpc_id == topology.vpc.id
        assert sum(1 for rt in topology.route_tables if rt.tier is Tier.PUBLIC) == 1

    def test_mismatched_lengths_materialize_shortest(self, synthesizer, three_zones):
        spec = three_zones(
            public_cidrs=["10.0.1.0/24", "10.0.2.0/24"],
            private_cidrs=["10.0.10.0/24", "10.0.20.0/24"],
        )
        topology = synthesizer.synthesize(spec)
        assert topology.zone_count == 2


class TestReferenceScenario:
    """10.0.0.0/16 over az-a / az-b."""

    def test_subnet_placement(self, topology):
        public = [(s.cidr, s.az) for s in topology.public_subnets]
        private = [(s.cidr, s.az) for s in topology.private_subnets]

        assert public == [("10.0.1.0/24", "az-a"), ("10.0.2.0/24", "az-b")]
        assert private == [("10.0.10.0/24", "az-a"), ("10.0.20.0/24", "az-b")]
        assert all(s.map_public_ip_on_launch for s in topology.public_subnets)
        assert not any(s.map_public_ip_on_launch for s in topology.private_subnets)

    def test_private_route_tables_use_same_index_nat(self, topology):
        for index, bundle in enumerate(topology.bundles):
            route = bundle.private_route_table.default_route
            assert route.destination == "0.0.0.0/0"
            assert route.target_id == topology.nat_gateways[index].id
            assert route.target_kind == "nat_gateway"

    def test_private_subnet_bound_to_own_route_table_only(self, topology):
        for bundle in topology.bundles:
            assoc = bundle.private_association
            assert assoc.subnet_id == bundle.private_subnet.id
            assert assoc.route_table_id == bundle.private_route_table.id

        private_assocs = [b.private_association.route_table_id for b in topology.bundles]
        assert len(set(private_assocs)) == len(private_assocs)

    def test_public_route_table_shared(self, topology):
        public_rt = topology.public_route_table
        assert public_rt.default_route.target_id == topology.internet_gateway.id
        assert [b.public_association.route_table_id for b in topology.bundles] == [
            public_rt.id, public_rt.id,
        ]

    def test_nat_gateways_sit_in_same_index_public_subnet(self, topology):
        for bundle in topology.bundles:
            nat = bundle.nat_gateway
            assert nat.subnet_id == bundle.public_subnet.id
            assert nat.allocation_id == bundle.address.id
            assert set(nat.depends_on) == {
                bundle.public_subnet.id,
                bundle.address.id,
                topology.internet_gateway.id,
            }

    def test_ids_follow_naming_convention(self, topology):
        assert topology.vpc.id == "ai-assistant-test-vpc"
        assert [n.id for n in topology.nat_gateways] == [
            "ai-assistant-test-nat-0",
            "ai-assistant-test-nat-1",
        ]
        assert topology.private_route_tables[1].id == "ai-assistant-test-private-rt-1"


class TestAddressSpace:
    """Subnets are disjoint and inside the VPC."""

    @pytest.mark.parametrize("fixture_name", ["topology", "topology_three"])
    def test_disjoint_and_contained(self, request, fixture_name):
        topology = request.getfixturevalue(fixture_name)
        vpc = ipaddress.IPv4Network(topology.vpc.cidr)
        blocks = [ipaddress.IPv4Network(s.cidr) for s in topology.subnets]

        assert all(b.subnet_of(vpc) for b in blocks)
        assert not any(a.overlaps(b) for a, b in combinations(blocks, 2))


class TestDeterminism:
    """Same spec, same entities."""

    def test_resynthesis_is_identical(self, synthesizer, two_zones):
        first = synthesizer.synthesize(two_zones())
        second = synthesizer.synthesize(two_zones())

        assert [e.id for e in first.entities()] == [e.id for e in second.entities()]
        assert snapshot(first) == snapshot(second)

    def test_every_edge_points_to_known_entity(self, topology):
        ids = {e.id for e in topology.entities()}
        assert all(dep in ids for _, dep in topology.edges())


class TestTags:
    """Tag sets are explicit and frozen."""

    def test_entity_tags(self, topology):
        subnet = topology.private_subnets[0]
        assert subnet.tags["Name"] == subnet.id
        assert subnet.tags["Project"] == "ai-assistant"
        assert subnet.tags["Environment"] == "test"
        assert subnet.tags["Owner"] == "platform"
        assert subnet.tags["Tier"] == "private"

    def test_tags_are_read_only(self, topology):
        with pytest.raises(TypeError):
            topology.vpc.tags["Owner"] = "someone-else"


class TestFailureSemantics:
    """TopologyError on impossible or corrupted topologies."""

    def test_single_zone_rejected(self, synthesizer, two_zones):
        spec = two_zones(
            az_list=["az-a"],
            public_cidrs=["10.0.1.0/24"],
            private_cidrs=["10.0.10.0/24"],
        )
        with pytest.raises(TopologyError) as exc_info:
            synthesizer.synthesize(spec)
        assert exc_info.value.invariant == "high-availability"

    def test_overlapping_blocks_rejected(self, synthesizer, two_zones):
        spec = two_zones(private_cidrs=["10.0.10.0/24", "10.0.10.0/24"])
        with pytest.raises(TopologyError) as exc_info:
            synthesizer.synthesize(spec)
        assert exc_info.value.invariant == "subnet-disjoint"

    def test_block_outside_vpc_rejected(self, synthesizer, two_zones):
        spec = two_zones(public_cidrs=["10.0.1.0/24", "172.16.0.0/24"])
        with pytest.raises(TopologyError) as exc_info:
            synthesizer.synthesize(spec)
        assert exc_info.value.invariant == "subnet-containment"

    def test_cross_wired_nat_detected(self, topology):
        first, second = topology.bundles
        rt = first.private_route_table
        crossed = replace(rt, routes=(replace(rt.default_route, target_id=second.nat_gateway.id),))
        broken = replace(topology, bundles=(replace(first, private_route_table=crossed), second))

        with pytest.raises(TopologyError) as exc_info:
            verify_topology(broken)
        assert exc_info.value.invariant == "nat-isolation"
        assert exc_info.value.entity_id == rt.id

    def test_shared_private_route_table_detected(self, topology):
        first, second = topology.bundles
        shared = replace(
            second.private_association, route_table_id=first.private_route_table.id,
        )
        broken = replace(topology, bundles=(first, replace(second, private_association=shared)))

        with pytest.raises(TopologyError) as exc_info:
            verify_topology(broken)
        assert exc_info.value.invariant == "association-isolation"

    def test_nat_requires_public_subnet(self, topology):
        bundle = topology.bundles[0]
        with pytest.raises(TopologyError) as exc_info:
            NatGateway.place(
                "bad-nat",
                public_subnet=bundle.private_subnet,
                address=bundle.address,
                internet_gateway=topology.internet_gateway,
                tags={},
            )
        assert exc_info.value.invariant == "nat-placement"
        assert exc_info.value.entity_id == "bad-nat"

    def test_nat_requires_same_index_address(self, topology):
        first, second = topology.bundles
        with pytest.raises(TopologyError) as exc_info:
            NatGateway.place(
                "bad-nat",
                public_subnet=first.public_subnet,
                address=ElasticIp(id="eip", index=second.index),
                internet_gateway=topology.internet_gateway,
                tags={},
            )
        assert exc_info.value.invariant == "nat-placement"
        assert exc_info.value.entity_id == "bad-nat"
