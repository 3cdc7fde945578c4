import copy
from collections import Counter

from gcpprovider.api import (
    VPC,
    CloudNAT,
    CloudRouter,
    EndpointIndependentMapping,
    FlowLogs,
    InfrastructureConfig,
    NatIPName,
    NetworkConfig,
)
from gcpprovider.field import ErrorType, Path
from gcpprovider.validation_infrastructure import (
    validate_cloud_nat_config,
    validate_infrastructure_config,
    validate_infrastructure_config_update,
)

PODS = "100.96.0.0/11"
SERVICES = "100.64.0.0/13"
NODES = "10.250.0.0/16"
INTERNAL = "10.10.0.0/24"
INVALID_CIDR = "invalid-cidr"


def _config():
    return InfrastructureConfig(
        networks=NetworkConfig(
            vpc=VPC(name="hugo", cloud_router=CloudRouter(name="hugo-cr")),
            cloud_nat=CloudNAT(min_ports_per_vm=20, nat_ip_names=[NatIPName(name="test")]),
            flow_logs=FlowLogs(
                aggregation_interval="INTERVAL_5_SEC",
                metadata="INCLUDE_ALL_METADATA",
                flow_sampling=0.4,
            ),
            internal=INTERNAL,
            workers="10.250.0.0/16",
            worker="10.250.0.0/16",
        )
    )


def _vpc_test_config():
    return InfrastructureConfig(networks=NetworkConfig(internal=INTERNAL, workers="10.250.0.0/16"))


def _triples(errors):
    return Counter((e.type, e.field, e.detail) for e in errors)


def _pairs(errors):
    return Counter((e.type, e.field) for e in errors)


def _validate(config, nodes=NODES, pods=PODS, services=SERVICES):
    return validate_infrastructure_config(config, nodes, pods, services, None)


# CIDR


def test_forbid_invalid_worker_cidrs():
    config = _config()
    config.networks.workers = INVALID_CIDR
    assert _triples(_validate(config)) == Counter(
        [(ErrorType.INVALID, "networks.workers", "invalid CIDR address: invalid-cidr")]
    )


def test_forbid_invalid_internal_cidr():
    config = _config()
    config.networks.internal = INVALID_CIDR
    assert _triples(_validate(config)) == Counter(
        [(ErrorType.INVALID, "networks.internal", "invalid CIDR address: invalid-cidr")]
    )


def test_forbid_workers_cidr_not_in_nodes_cidr():
    config = _config()
    config.networks.workers = "1.1.1.1/32"
    assert _triples(_validate(config)) == Counter(
        [(ErrorType.INVALID, "networks.workers", 'must be a subset of "networking.nodes" ("10.250.0.0/16")')]
    )


def test_forbid_internal_overlapping_nodes_and_workers():
    overlapping = "10.250.1.0/30"
    config = _config()
    config.networks.internal = overlapping
    config.networks.workers = overlapping
    errors = _validate(config, nodes=overlapping)
    assert _triples(errors) == Counter(
        [
            (ErrorType.INVALID, "networks.internal", 'must not overlap with "networking.nodes" ("10.250.1.0/30")'),
            (ErrorType.INVALID, "networks.internal", 'must not overlap with "networks.workers" ("10.250.1.0/30")'),
        ]
    )


def test_forbid_non_canonical_cidrs():
    config = _config()
    config.networks.internal = "10.10.0.4/24"
    config.networks.workers = "10.250.3.8/24"
    errors = validate_infrastructure_config(config, "10.250.0.3/16", "100.96.0.4/11", "100.64.0.5/13", None)
    assert len(errors) == 2
    assert _triples(errors) == Counter(
        [
            (ErrorType.INVALID, "networks.internal", "must be valid canonical CIDR"),
            (ErrorType.INVALID, "networks.workers", "must be valid canonical CIDR"),
        ]
    )


def test_allow_valid_config():
    assert _validate(_config()) == []


def test_allow_valid_config_without_pods_and_services():
    assert validate_infrastructure_config(_config(), NODES, None, None, None) == []


def test_require_worker_network():
    config = _config()
    config.networks.worker = ""
    config.networks.workers = ""
    errors = validate_infrastructure_config(config, None, PODS, SERVICES, None)
    assert _triples(errors) == Counter(
        [(ErrorType.REQUIRED, "networks.workers", "must specify the network range for the worker network")]
    )


def test_explicit_field_path_prefixes_errors():
    config = _config()
    config.networks.workers = INVALID_CIDR
    errors = validate_infrastructure_config(config, NODES, PODS, SERVICES, Path("spec"))
    assert [e.field for e in errors] == ["spec.networks.workers"]


# VPC


def test_forbid_cloud_router_without_vpc_name():
    config = _vpc_test_config()
    config.networks.vpc = VPC(cloud_router=CloudRouter())
    assert _triples(_validate(config)) == Counter(
        [
            (
                ErrorType.INVALID,
                "networks.vpc.cloudRouter",
                "cloud router can not be configured when the VPC name is not specified",
            ),
            (ErrorType.INVALID, "networks.vpc.name", "vpc name must not be empty when vpc key is provided"),
        ]
    )


def test_forbid_empty_flow_log_config():
    config = _config()
    config.networks.flow_logs = FlowLogs()
    assert _triples(_validate(config)) == Counter(
        [
            (
                ErrorType.REQUIRED,
                "networks.flowLogs",
                "at least one VPC flow log parameter must be specified when VPC flow log section is provided",
            )
        ]
    )


def test_forbid_wrong_flow_log_config():
    config = _config()
    config.networks.flow_logs = FlowLogs(aggregation_interval="foo", flow_sampling=1.2, metadata="foo")
    assert _triples(_validate(config)) == Counter(
        [
            (
                ErrorType.NOT_SUPPORTED,
                "networks.flowLogs.aggregationInterval",
                'supported values: "INTERVAL_5_SEC", "INTERVAL_30_SEC", "INTERVAL_1_MIN", '
                '"INTERVAL_5_MIN", "INTERVAL_15_MIN"',
            ),
            (ErrorType.NOT_SUPPORTED, "networks.flowLogs.metadata", 'supported values: "INCLUDE_ALL_METADATA"'),
            (ErrorType.INVALID, "networks.flowLogs.flowSampling", "must contain a valid value"),
        ]
    )


def test_forbid_reusing_vpc_without_cloud_router():
    config = _vpc_test_config()
    config.networks.vpc = VPC(name="test-vpc")
    assert _triples(_validate(config)) == Counter(
        [(ErrorType.INVALID, "networks.vpc.cloudRouter", "cloud router must be defined when reusing a VPC")]
    )


def test_forbid_reusing_vpc_without_cloud_router_name():
    config = _vpc_test_config()
    config.networks.vpc = VPC(name="test-vpc", cloud_router=CloudRouter())
    assert _triples(_validate(config)) == Counter(
        [
            (
                ErrorType.INVALID,
                "networks.vpc.cloudRouter.name",
                "cloud router name must be specified when reusing a VPC",
            )
        ]
    )


def test_allow_correct_flow_log_config():
    config = _config()
    config.networks.flow_logs = FlowLogs(
        aggregation_interval="INTERVAL_1_MIN", flow_sampling=0.5, metadata="INCLUDE_ALL_METADATA"
    )
    assert _validate(config) == []


# CloudNAT


def test_allow_cloud_nat_with_nat_ip_names():
    config = copy.deepcopy(_config())
    config.networks.cloud_nat = CloudNAT(nat_ip_names=[NatIPName(name="test")])
    assert _validate(config) == []


def test_allow_cloud_nat_without_nat_ip_names():
    config = copy.deepcopy(_config())
    config.networks.cloud_nat = CloudNAT()
    assert _validate(config) == []


def test_forbid_empty_nat_ip_names():
    config = copy.deepcopy(_config())
    config.networks.cloud_nat = CloudNAT(nat_ip_names=[])
    assert _triples(_validate(config)) == Counter(
        [(ErrorType.INVALID, "networks.cloudNAT.natIPNames", "nat IP names cannot be empty.")]
    )


def test_forbid_dynamic_allocation_with_endpoint_independent_mapping():
    config = CloudNAT(
        enable_dynamic_port_allocation=True,
        endpoint_independent_mapping=EndpointIndependentMapping(enabled=True),
    )
    errors = validate_cloud_nat_config(config, Path("networks"))
    assert _triples(errors) == Counter(
        [
            (
                ErrorType.INVALID,
                "networks.cloudNAT.enableDynamicPortAllocation",
                "dynamic port allocation may not be enabled at the same time as endpoint independent mapping.",
            )
        ]
    )


def test_forbid_non_power_of_two_ports():
    config = CloudNAT(enable_dynamic_port_allocation=True, min_ports_per_vm=20, max_ports_per_vm=100)
    errors = validate_cloud_nat_config(config, Path("networks"))
    assert _triples(errors) == Counter(
        [
            (ErrorType.INVALID, "networks.cloudNAT.maxPortsPerVM", "maxPortsPerVM must be a power of two."),
            (
                ErrorType.INVALID,
                "networks.cloudNAT.minPortsPerVM",
                "minPortsPerVM must be a power of two if dynamic port allocation is enabled.",
            ),
        ]
    )


def test_forbid_min_ports_greater_than_max_ports():
    config = CloudNAT(enable_dynamic_port_allocation=True, min_ports_per_vm=4096, max_ports_per_vm=1024)
    errors = validate_cloud_nat_config(config, Path("networks"))
    assert _triples(errors) == Counter(
        [
            (
                ErrorType.INVALID,
                "networks.cloudNAT.minPortsPerVM",
                "minPortsPerVM may not be greater than maxPortsPerVM.",
            )
        ]
    )


def test_forbid_max_ports_without_dynamic_allocation():
    config = CloudNAT(max_ports_per_vm=1024)
    errors = validate_cloud_nat_config(config, Path("networks"))
    assert _triples(errors) == Counter(
        [
            (
                ErrorType.INVALID,
                "networks.cloudNAT.maxPortsPerVM",
                "maxPortsPerVM are only configurable if dynamic port allocation is enabled.",
            )
        ]
    )
    assert errors[0].bad_value is None


def test_allow_valid_dynamic_port_allocation():
    config = CloudNAT(enable_dynamic_port_allocation=True, min_ports_per_vm=64, max_ports_per_vm=1024)
    assert validate_cloud_nat_config(config, Path("networks")) == []


# Update


def test_update_unchanged_config():
    config = _config()
    assert validate_infrastructure_config_update(config, config, None) == []


def test_update_allows_changing_cloud_nat_and_flow_logs():
    old = _config()
    new = copy.deepcopy(old)
    new.networks.cloud_nat = CloudNAT(min_ports_per_vm=30, nat_ip_names=[NatIPName(name="not-test")])
    new.networks.flow_logs = FlowLogs(aggregation_interval="INTERVAL_30_SEC")
    assert validate_infrastructure_config_update(old, new, None) == []


def test_update_forbids_changing_network_details():
    old = _config()
    new = copy.deepcopy(old)
    new.networks.vpc = VPC(name="not-hugo", cloud_router=CloudRouter(name="not-hugo-cr"))
    new.networks.workers = "10.96.0.0/16"
    new.networks.worker = "10.96.0.0/16"
    new.networks.internal = "10.96.0.0/16"
    errors = validate_infrastructure_config_update(old, new, None)
    assert _pairs(errors) == Counter(
        [
            (ErrorType.INVALID, "networks.vpc.name"),
            (ErrorType.INVALID, "networks.vpc.cloudRouter"),
            (ErrorType.INVALID, "networks.internal"),
            (ErrorType.INVALID, "networks.workers"),
        ]
    )


def test_update_forbids_removing_vpc():
    old = _config()
    new = copy.deepcopy(old)
    new.networks.vpc = None
    errors = validate_infrastructure_config_update(old, new, None)
    assert _pairs(errors) == Counter([(ErrorType.INVALID, "networks.vpc")])


def test_update_allows_expanding_worker_subnet():
    old = _config()
    new = copy.deepcopy(old)
    new.networks.workers = "10.250.0.0/15"
    assert validate_infrastructure_config_update(old, new, None) == []


def test_update_forbids_shrinking_worker_subnet():
    old = _config()
    new = copy.deepcopy(old)
    new.networks.workers = "10.250.0.0/17"
    errors = validate_infrastructure_config_update(old, new, None)
    assert _pairs(errors) == Counter([(ErrorType.INVALID, "networks.workers")])
    assert errors[0].detail == "worker CIDR blocks can only be expanded"