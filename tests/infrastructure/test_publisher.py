"""
Tests for the network output contract.

Validates:
1. Lists ordered by AZ index
2. Subnet subsets handed to database and search consumers
3. Stable flat export keys
"""

from assistant_iac.topology.publisher import OutputPublisher
from assistant_iac.topology.security import APP_ROLE, SecurityBoundaryBuilder


class TestContract:
    """NetworkContract contents."""

    def test_ordered_by_zone_index(self, topology, boundary_builder):
        contract = OutputPublisher().publish(topology, boundary_builder.build(topology))

        assert contract.vpc_id == "ai-assistant-test-vpc"
        assert contract.availability_zones == ("az-a", "az-b")
        assert contract.private_subnet_ids == (
            "ai-assistant-test-private-subnet-0",
            "ai-assistant-test-private-subnet-1",
        )
        assert contract.private_subnet_cidrs == ("10.0.10.0/24", "10.0.20.0/24")
        assert contract.nat_gateway_ids == ("ai-assistant-test-nat-0", "ai-assistant-test-nat-1")

    def test_consumer_subnet_subsets(self, topology_three, boundary_builder):
        contract = OutputPublisher().publish(topology_three, boundary_builder.build(topology_three))

        assert contract.database_subnet_ids == contract.private_subnet_ids
        assert contract.search_subnet_ids == contract.private_subnet_ids[:2]

    def test_client_group_is_app(self, topology, boundary_builder):
        boundary = boundary_builder.build(topology)
        contract = OutputPublisher().publish(topology, boundary)

        assert contract.client_security_group_id == boundary.group(APP_ROLE).id
        assert contract.endpoint_ids == {
            ("gateway", "s3"): "ai-assistant-test-s3-gateway-endpoint",
            ("interface", "secretsmanager"): "ai-assistant-test-secretsmanager-interface-endpoint",
        }

    def test_resolvers_applied(self, topology, boundary_builder):
        publisher = OutputPublisher(
            resolve=lambda entity_id: f"id:{entity_id}",
            resolve_address=lambda eip_id: f"ip:{eip_id}",
        )
        contract = publisher.publish(topology, boundary_builder.build(topology))

        assert contract.vpc_id == "id:ai-assistant-test-vpc"
        assert contract.nat_addresses == (
            "ip:ai-assistant-test-nat-eip-0",
            "ip:ai-assistant-test-nat-eip-1",
        )
        assert contract.vpc_cidr == "10.0.0.0/16"


class TestExports:
    """Flat export map."""

    def test_export_keys(self, topology, boundary_builder):
        exports = OutputPublisher().publish(topology, boundary_builder.build(topology)).as_dict()

        assert list(exports)[:3] == ["vpc_id", "vpc_cidr", "availability_zones"]
        for key in (
            "app_sg_id",
            "data_sg_id",
            "secretsmanager_endpoint_sg_id",
            "s3_gateway_endpoint_id",
            "secretsmanager_interface_endpoint_id",
            "database_subnet_ids",
            "search_subnet_ids",
        ):
            assert key in exports

    def test_exports_are_lists(self, topology, boundary_builder):
        exports = OutputPublisher().publish(topology, boundary_builder.build(topology)).as_dict()
        assert exports["public_subnet_ids"] == [
            "ai-assistant-test-public-subnet-0",
            "ai-assistant-test-public-subnet-1",
        ]

    def test_republish_is_stable(self, synthesizer, two_zones, boundary_builder):
        first = synthesizer.synthesize(two_zones())
        second = synthesizer.synthesize(two_zones())

        assert (
            OutputPublisher().publish(first, boundary_builder.build(first)).as_dict()
            == OutputPublisher().publish(second, boundary_builder.build(second)).as_dict()
        )

    def test_same_service_on_both_endpoint_kinds(self, namer, topology):
        boundary = SecurityBoundaryBuilder(namer, region="us-east-1", interface_services=["s3"]).build(topology)
        contract = OutputPublisher().publish(topology, boundary)
        exports = contract.as_dict()

        assert contract.endpoint_ids == {
            ("gateway", "s3"): "ai-assistant-test-s3-gateway-endpoint",
            ("interface", "s3"): "ai-assistant-test-s3-interface-endpoint",
        }
        assert exports["s3_gateway_endpoint_id"] != exports["s3_interface_endpoint_id"]
