"""
Tests for network configuration validation.

Validates:
1. The reference layout passes untouched
2. Every rule fires on its own input
3. All violations are reported in one pass
4. Invalid input is never rewritten
"""

import pytest

from assistant_iac.exceptions import ConfigError
from assistant_iac.topology.validator import ConfigValidator


def rules_of(violations):
    return {v.rule for v in violations}


class TestValidSpecs:
    """Specs that must pass."""

    def test_reference_layout_is_valid(self, two_zones):
        assert ConfigValidator().validate(two_zones()) == []

    def test_require_valid_returns_same_spec(self, two_zones):
        spec = two_zones()
        assert ConfigValidator().require_valid(spec) is spec

    def test_three_zones_with_domain_is_valid(self, three_zones):
        spec = three_zones(domain_name="assistant.example.com")
        assert ConfigValidator().validate(spec) == []

    def test_other_private_ranges_accepted(self, two_zones):
        spec = two_zones(
            vpc_cidr="192.168.0.0/16",
            public_cidrs=["192.168.1.0/24", "192.168.2.0/24"],
            private_cidrs=["192.168.10.0/24", "192.168.20.0/24"],
        )
        assert ConfigValidator().validate(spec) == []


class TestHighAvailability:
    """Single-zone layouts are rejected."""

    def test_single_zone_rejected(self, two_zones):
        spec = two_zones(
            az_list=["az-a"],
            public_cidrs=["10.0.1.0/24"],
            private_cidrs=["10.0.10.0/24"],
        )
        violations = ConfigValidator().validate(spec)

        assert "high-availability" in rules_of(violations)
        assert {v.field for v in violations if v.rule == "subnet-count"} == {
            "public_cidrs", "private_cidrs",
        }

    def test_single_zone_raises_config_error(self, two_zones):
        spec = two_zones(
            az_list=["az-a"],
            public_cidrs=["10.0.1.0/24"],
            private_cidrs=["10.0.10.0/24"],
        )
        with pytest.raises(ConfigError) as exc_info:
            ConfigValidator().require_valid(spec)

        assert "high-availability" in rules_of(exc_info.value.violations)
        assert "az_list" in str(exc_info.value)

    def test_duplicate_zone_rejected(self, two_zones):
        violations = ConfigValidator().validate(two_zones(az_list=["az-a", "az-a"]))
        assert [(v.field, v.rule) for v in violations] == [("az_list[1]", "az-distinct")]


class TestCidrRules:
    """Address block rules."""

    def test_host_bits_rejected_not_normalized(self, two_zones):
        spec = two_zones(vpc_cidr="10.0.0.1/16")
        violations = ConfigValidator().validate(spec)

        assert ("vpc_cidr", "cidr-format") in {(v.field, v.rule) for v in violations}
        assert spec.vpc_cidr == "10.0.0.1/16"

    def test_public_address_space_rejected(self, two_zones):
        spec = two_zones(
            vpc_cidr="8.8.0.0/16",
            public_cidrs=["8.8.1.0/24", "8.8.2.0/24"],
            private_cidrs=["8.8.10.0/24", "8.8.20.0/24"],
        )
        violations = ConfigValidator().validate(spec)
        assert {v.field for v in violations if v.rule == "private-range"} == {
            "vpc_cidr",
            "public_cidrs[0]", "public_cidrs[1]",
            "private_cidrs[0]", "private_cidrs[1]",
        }

    def test_vpc_prefix_limits(self, two_zones):
        violations = ConfigValidator().validate(two_zones(vpc_cidr="10.0.0.0/8"))
        assert rules_of(violations) == {"vpc-prefix"}

    def test_subnet_outside_vpc(self, two_zones):
        spec = two_zones(public_cidrs=["10.0.1.0/24", "10.1.2.0/24"])
        violations = ConfigValidator().validate(spec)
        assert [(v.field, v.rule) for v in violations] == [("public_cidrs[1]", "within-vpc")]

    def test_overlapping_subnets(self, two_zones):
        spec = two_zones(private_cidrs=["10.0.10.0/24", "10.0.1.128/25"])
        violations = ConfigValidator().validate(spec)
        assert [(v.field, v.rule) for v in violations] == [("private_cidrs[1]", "overlap")]


class TestLengthMismatch:
    """One public and one private block per zone."""

    def test_fewer_blocks_than_zones(self, two_zones):
        spec = two_zones(az_list=["az-a", "az-b", "az-c"])
        violations = ConfigValidator().validate(spec)
        assert {v.field for v in violations if v.rule == "length-mismatch"} == {
            "public_cidrs", "private_cidrs",
        }

    def test_more_blocks_than_zones(self, three_zones):
        spec = three_zones(az_list=["az-a", "az-b"])
        violations = ConfigValidator().validate(spec)
        assert rules_of(violations) == {"length-mismatch"}


class TestOptionalFields:
    """Domain and tag rules."""

    @pytest.mark.parametrize(
        "domain",
        ["bad_domain.com", "localhost", "-lead.example.com", "example.com\n", "example.com.."],
    )
    def test_bad_domain(self, two_zones, domain):
        violations = ConfigValidator().validate(two_zones(domain_name=domain))
        assert rules_of(violations) == {"domain-format"}

    def test_fully_qualified_domain_accepted(self, two_zones):
        assert ConfigValidator().validate(two_zones(domain_name="assistant.example.com.")) == []

    def test_reserved_tag_prefix(self, two_zones):
        violations = ConfigValidator().validate(two_zones(tags={"aws:owner": "x"}))
        assert rules_of(violations) == {"tag-format"}

    def test_long_tag_value(self, two_zones):
        violations = ConfigValidator().validate(two_zones(tags={"Owner": "x" * 257}))
        assert rules_of(violations) == {"tag-format"}


class TestSinglePass:
    """Every independent rule runs even after earlier failures."""

    def test_all_violations_reported_together(self):
        from assistant_iac.configs.base import NetworkSpec

        spec = NetworkSpec(
            vpc_cidr="10.0.0.1/16",
            az_list=["az-a"],
            public_cidrs=["300.0.0.0/24"],
            private_cidrs=["10.0.10.0/24", "10.0.10.0/25"],
            domain_name="bad_domain",
        )
        violations = ConfigValidator().validate(spec)

        assert {
            "cidr-format",
            "high-availability",
            "subnet-count",
            "length-mismatch",
            "overlap",
            "domain-format",
        } <= rules_of(violations)

    def test_config_error_lists_every_violation(self, two_zones):
        spec = two_zones(vpc_cidr="nonsense", domain_name="bad_domain")
        with pytest.raises(ConfigError) as exc_info:
            ConfigValidator().require_valid(spec)

        error = exc_info.value
        assert rules_of(error.violations) == {"cidr-format", "domain-format"}
        assert error.details["fields"] == ["domain_name", "vpc_cidr"]


class TestEndpointServices:
    """Endpoint service lists."""

    def test_default_services_are_valid(self):
        assert ConfigValidator().validate_endpoints() == []

    def test_service_on_both_kinds_accepted(self):
        assert ConfigValidator().validate_endpoints(gateway_services=["s3"], interface_services=["s3"]) == []

    def test_repeated_interface_service_rejected(self, two_zones):
        with pytest.raises(ConfigError) as exc_info:
            ConfigValidator().require_valid(
                two_zones(), interface_services=["secretsmanager", "secretsmanager"],
            )

        (violation,) = exc_info.value.violations
        assert violation.rule == "service-distinct"
        assert violation.field == "interface_endpoints[1]"

    @pytest.mark.parametrize("service", ["", "Secrets Manager", "s3.", "bedrock--runtime\n"])
    def test_malformed_service_rejected(self, service):
        violations = ConfigValidator().validate_endpoints(interface_services=[service])
        assert rules_of(violations) == {"service-format"}
