"""
Pulumi program entry point for the AI assistant network.

Runs the planning pipeline, then hands the result to Pulumi:
1. Configuration (stack config -> NetworkSpec)
2. Validation (every violation reported at once, nothing created on failure)
3. Topology synthesis -> VPC component
4. Security boundary -> Security Groups, VPC Endpoints components
5. Output contract -> stack exports + infrastructure.env

`pulumi preview` / `up` / `destroy` provide plan, apply and teardown; the
resource names are the synthesized entity ids, so re-running against an
unchanged config previews no changes.
"""

import pulumi

from assistant_iac.configs.constants import PROJECT_NAME
from assistant_iac.configs.environment import get_config
from assistant_iac.exceptions import ConfigError
from assistant_iac.topology.publisher import OutputPublisher
from assistant_iac.topology.security import SecurityBoundaryBuilder
from assistant_iac.topology.synthesizer import TopologySynthesizer
from assistant_iac.topology.validator import ConfigValidator
from assistant_iac.utils.logger import configure_logging
from assistant_iac.utils.naming import ResourceNamer
from assistant_iac.utils.outputs import write_outputs_to_env

# Networking
from assistant_iac.components.networking.vpc import VpcComponent
from assistant_iac.components.networking.security_groups import SecurityGroupsComponent
from assistant_iac.components.networking.vpc_endpoints import VpcEndpointsComponent


def main() -> None:
    """Deploy the AI assistant network."""
    configure_logging()

    # Load configuration
    config = get_config()
    namer = ResourceNamer(project=PROJECT_NAME, environment=config.environment)

    try:
        spec = ConfigValidator().require_valid(
            config.network, interface_services=config.interface_endpoints,
        )
    except ConfigError as e:
        for violation in e.violations:
            pulumi.log.error(str(violation))
        raise

    # --- Layer 1: Topology ---
    topology = TopologySynthesizer(namer, tags=config.get_tags()).synthesize(spec)
    vpc = VpcComponent(
        name=namer.name("network"),
        topology=topology,
    )

    # --- Layer 2: Security boundary ---
    boundary = SecurityBoundaryBuilder(
        namer,
        region=config.region,
        tags=config.get_tags(),
        interface_services=config.interface_endpoints,
    ).build(topology)

    security_groups = SecurityGroupsComponent(
        name=namer.name("security"),
        boundary=boundary,
        dependencies=vpc.resources,
    )

    vpc_endpoints = VpcEndpointsComponent(
        name=namer.name("endpoints"),
        boundary=boundary,
        dependencies={**vpc.resources, **security_groups.resources},
    )

    # --- Exports ---
    resources = {**vpc.resources, **security_groups.resources, **vpc_endpoints.resources}
    contract = OutputPublisher(
        resolve=lambda entity_id: resources[entity_id].id,
        resolve_address=lambda eip_id: resources[eip_id].public_ip,
    ).publish(topology, boundary)
    outputs = contract.as_dict()

    # Write outputs to .env file for local development
    write_outputs_to_env(outputs, "infrastructure.env")

    # Export to Pulumi stack
    for key, value in outputs.items():
        pulumi.export(key, value)


# Execute
main()
