"""Validation of InfrastructureConfig objects."""

from __future__ import annotations

from gcpprovider import api
from gcpprovider.cidr import CIDR, validate_cidr_is_canonical
from gcpprovider.field import (
    ErrorList,
    Path,
    invalid,
    not_supported,
    required,
    validate_immutable_field,
)

AGGREGATION_INTERVALS = (
    "INTERVAL_5_SEC",
    "INTERVAL_30_SEC",
    "INTERVAL_1_MIN",
    "INTERVAL_5_MIN",
    "INTERVAL_15_MIN",
)
"""Supported aggregation intervals for VPC flow logs."""

FLOW_LOG_METADATA = ("INCLUDE_ALL_METADATA",)
"""Supported metadata settings for VPC flow logs."""

_INT32_MASK = 0xFFFFFFFF


def _child(path: Path | None, *names: str) -> Path:
    return Path(*names) if path is None else path.child(*names)


def _is_power_of_two(value: int) -> bool:
    # Evaluated on the 32-bit two's complement form; zero counts as well.
    return (value & _INT32_MASK) & ((value - 1) & _INT32_MASK) == 0


def validate_infrastructure_config(
    infra: api.InfrastructureConfig,
    nodes_cidr: str | None,
    pods_cidr: str | None,
    services_cidr: str | None,
    fld_path: Path | None = None,
) -> ErrorList:
    """Validate an InfrastructureConfig against the shoot's network ranges."""
    errors: ErrorList = []
    networking_path = Path("networking")
    nodes = CIDR(nodes_cidr, networking_path.child("nodes")) if nodes_cidr is not None else None
    pods = CIDR(pods_cidr, networking_path.child("pods")) if pods_cidr is not None else None
    services = (
        CIDR(services_cidr, networking_path.child("services")) if services_cidr is not None else None
    )

    networks = infra.networks
    networks_path = _child(fld_path, "networks")
    if not networks.worker and not networks.workers:
        errors.append(
            required(networks_path.child("workers"), "must specify the network range for the worker network")
        )

    worker_cidr: CIDR | None = None
    for name, value in (("worker", networks.worker), ("workers", networks.workers)):
        if value:
            path = networks_path.child(name)
            worker_cidr = CIDR(value, path)
            errors += worker_cidr.validate_parse()
            errors += validate_cidr_is_canonical(path, value)

    if networks.internal is not None:
        internal_path = networks_path.child("internal")
        internal_cidr = CIDR(networks.internal, internal_path)
        errors += internal_cidr.validate_parse()
        errors += validate_cidr_is_canonical(internal_path, networks.internal)
        for other in (pods, services, nodes, worker_cidr):
            if other is not None:
                errors += other.validate_not_overlap(internal_cidr)

    if nodes is not None:
        errors += nodes.validate_subset(worker_cidr)

    vpc = networks.vpc
    if vpc is not None:
        if not vpc.name:
            errors.append(
                invalid(networks_path.child("vpc", "name"), vpc.name, "vpc name must not be empty when vpc key is provided")
            )
            if vpc.cloud_router is not None:
                errors.append(
                    invalid(
                        networks_path.child("vpc", "cloudRouter"),
                        vpc.cloud_router,
                        "cloud router can not be configured when the VPC name is not specified",
                    )
                )
        else:
            if vpc.cloud_router is None:
                errors.append(
                    invalid(
                        networks_path.child("vpc", "cloudRouter"),
                        vpc.cloud_router,
                        "cloud router must be defined when reusing a VPC",
                    )
                )
            elif not vpc.cloud_router.name:
                errors.append(
                    invalid(
                        networks_path.child("vpc", "cloudRouter", "name"),
                        vpc.cloud_router,
                        "cloud router name must be specified when reusing a VPC",
                    )
                )

    flow_logs = networks.flow_logs
    if flow_logs is not None:
        if (
            flow_logs.aggregation_interval is None
            and flow_logs.flow_sampling is None
            and flow_logs.metadata is None
        ):
            errors.append(
                required(
                    networks_path.child("flowLogs"),
                    "at least one VPC flow log parameter must be specified when VPC flow log section is provided",
                )
            )
        if flow_logs.aggregation_interval is not None and flow_logs.aggregation_interval not in AGGREGATION_INTERVALS:
            errors.append(
                not_supported(
                    networks_path.child("flowLogs", "aggregationInterval"),
                    flow_logs.aggregation_interval,
                    AGGREGATION_INTERVALS,
                )
            )
        if flow_logs.metadata is not None and flow_logs.metadata not in FLOW_LOG_METADATA:
            errors.append(
                not_supported(networks_path.child("flowLogs", "metadata"), flow_logs.metadata, FLOW_LOG_METADATA)
            )
        if flow_logs.flow_sampling is not None and not 0 <= flow_logs.flow_sampling <= 1:
            errors.append(
                invalid(
                    networks_path.child("flowLogs", "flowSampling"),
                    flow_logs.flow_sampling,
                    "must contain a valid value",
                )
            )

    if networks.cloud_nat is not None:
        errors += validate_cloud_nat_config(networks.cloud_nat, networks_path)

    return errors


def validate_cloud_nat_config(config: api.CloudNAT | None, fld_path: Path | None = None) -> ErrorList:
    """Validate a CloudNAT config, checking only for obvious mistakes and gotchas."""
    errors: ErrorList = []
    if config is None:
        return errors
    path = _child(fld_path, "cloudNAT")

    if config.nat_ip_names is not None and len(config.nat_ip_names) == 0:
        errors.append(invalid(path.child("natIPNames"), config.nat_ip_names, "nat IP names cannot be empty."))

    if config.enable_dynamic_port_allocation:
        mapping = config.endpoint_independent_mapping
        if mapping is not None and mapping.enabled:
            errors.append(
                invalid(
                    path.child("enableDynamicPortAllocation"),
                    config.enable_dynamic_port_allocation,
                    "dynamic port allocation may not be enabled at the same time as endpoint independent mapping.",
                )
            )
        if config.max_ports_per_vm is not None and not _is_power_of_two(config.max_ports_per_vm):
            errors.append(
                invalid(path.child("maxPortsPerVM"), config.max_ports_per_vm, "maxPortsPerVM must be a power of two.")
            )
        if config.min_ports_per_vm is not None and not _is_power_of_two(config.min_ports_per_vm):
            errors.append(
                invalid(
                    path.child("minPortsPerVM"),
                    config.min_ports_per_vm,
                    "minPortsPerVM must be a power of two if dynamic port allocation is enabled.",
                )
            )
        if (
            config.max_ports_per_vm is not None
            and config.min_ports_per_vm is not None
            and config.min_ports_per_vm > config.max_ports_per_vm
        ):
            errors.append(
                invalid(
                    path.child("minPortsPerVM"),
                    config.min_ports_per_vm,
                    "minPortsPerVM may not be greater than maxPortsPerVM.",
                )
            )
    elif config.max_ports_per_vm is not None:
        errors.append(
            invalid(
                path.child("maxPortsPerVM"),
                config.min_ports_per_vm,
                "maxPortsPerVM are only configurable if dynamic port allocation is enabled.",
            )
        )

    return errors


def _effective_worker_cidr(networks: api.NetworkConfig, networks_path: Path) -> CIDR:
    if networks.workers:
        return CIDR(networks.workers, networks_path.child("workers"))
    return CIDR(networks.worker, networks_path.child("worker"))


def validate_infrastructure_config_update(
    old_config: api.InfrastructureConfig,
    new_config: api.InfrastructureConfig,
    fld_path: Path | None = None,
) -> ErrorList:
    """Validate a change from one InfrastructureConfig to another."""
    errors: ErrorList = []
    networks_path = _child(fld_path, "networks")
    vpc_path = networks_path.child("vpc")

    old_vpc = old_config.networks.vpc
    new_vpc = new_config.networks.vpc
    if old_vpc is not None and new_vpc is None:
        errors += validate_immutable_field(new_vpc, old_vpc, vpc_path)
    if old_vpc is not None and new_vpc is not None:
        errors += validate_immutable_field(new_vpc.name, old_vpc.name, vpc_path.child("name"))
        errors += validate_immutable_field(new_vpc.cloud_router, old_vpc.cloud_router, vpc_path.child("cloudRouter"))
        errors += validate_immutable_field(
            new_config.networks.internal, old_config.networks.internal, networks_path.child("internal")
        )

    new_worker = _effective_worker_cidr(new_config.networks, networks_path)
    old_worker = _effective_worker_cidr(old_config.networks, networks_path)
    if new_worker.validate_subset(old_worker):
        errors.append(invalid(new_worker.path, new_worker.cidr, "worker CIDR blocks can only be expanded"))

    return errors