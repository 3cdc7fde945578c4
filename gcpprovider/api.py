"""Internal API types for the GCP provider extension."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

GROUP_NAME = "gcp.provider.extensions.gardener.cloud"
"""The API group of the provider's types."""

INTERNAL_VERSION = "__internal"
"""The version name used for the internal (hub) representation of the types."""


@dataclass(frozen=True)
class GroupKind:
    """A kind qualified by its API group."""

    group: str
    kind: str

    def __str__(self) -> str:
        if not self.group:
            return self.kind
        return f"{self.kind}.{self.group}"


@dataclass(frozen=True)
class GroupResource:
    """A resource qualified by its API group."""

    group: str
    resource: str

    def __str__(self) -> str:
        if not self.group:
            return self.resource
        return f"{self.resource}.{self.group}"


def kind(kind: str) -> GroupKind:
    """Qualify an unqualified kind with the provider's API group."""
    return GroupKind(group=GROUP_NAME, kind=kind)


def resource(resource: str) -> GroupResource:
    """Qualify an unqualified resource with the provider's API group."""
    return GroupResource(group=GROUP_NAME, resource=resource)


class SubnetPurpose(str, Enum):
    """The purpose for which a subnet was created."""

    NODES = "nodes"
    INTERNAL = "internal"

    def __str__(self) -> str:
        return self.value


# Cloud profile


@dataclass
class MachineImageVersion:
    """A version of a machine image and its provider-specific image path."""

    version: str = ""
    image: str = ""
    architecture: str | None = None


@dataclass
class MachineImages:
    """Maps a logical machine image name to its versions."""

    name: str = ""
    versions: list[MachineImageVersion] = field(default_factory=list)


@dataclass
class CloudProfileConfig:
    """Provider-specific configuration embedded into a CloudProfile."""

    machine_images: list[MachineImages] = field(default_factory=list)


# Control plane


@dataclass
class CloudControllerManagerConfig:
    """Settings for the cloud-controller-manager."""

    feature_gates: dict[str, bool] | None = None


@dataclass
class Storage:
    """Settings for the default StorageClass and VolumeSnapshotClass."""

    managed_default_storage_class: bool | None = None
    managed_default_volume_snapshot_class: bool | None = None


@dataclass
class ControlPlaneConfig:
    """Configuration settings for the control plane."""

    zone: str = ""
    cloud_controller_manager: CloudControllerManagerConfig | None = None
    storage: Storage | None = None


# Infrastructure


@dataclass
class CloudRouter:
    """Name of an existing or to-be-created CloudRouter."""

    name: str = ""


@dataclass
class VPC:
    """A VPC and its related CloudRouter."""

    name: str = ""
    cloud_router: CloudRouter | None = None


@dataclass
class EndpointIndependentMapping:
    """Endpoint independent mapping options."""

    enabled: bool = False


@dataclass
class NatIP:
    """A user provided external IP usable by the NAT gateway."""

    ip: str = ""


@dataclass
class NatIPName:
    """Name of a user provided external IP usable by the NAT gateway."""

    name: str = ""


@dataclass
class CloudNAT:
    """Configuration of the CloudNAT resource."""

    endpoint_independent_mapping: EndpointIndependentMapping | None = None
    min_ports_per_vm: int | None = None
    max_ports_per_vm: int | None = None
    enable_dynamic_port_allocation: bool = False
    # None means "not given"; an empty list is an explicit, distinct value.
    nat_ip_names: list[NatIPName] | None = None
    icmp_idle_timeout_sec: int | None = None
    tcp_established_idle_timeout_sec: int | None = None
    tcp_time_wait_timeout_sec: int | None = None
    tcp_transitory_idle_timeout_sec: int | None = None
    udp_idle_timeout_sec: int | None = None


@dataclass
class FlowLogs:
    """VPC flow log configuration."""

    aggregation_interval: str | None = None
    flow_sampling: float | None = None
    metadata: str | None = None


@dataclass
class NetworkConfig:
    """Kubernetes and infrastructure network settings."""

    vpc: VPC | None = None
    cloud_nat: CloudNAT | None = None
    internal: str | None = None
    worker: str = ""
    workers: str = ""
    flow_logs: FlowLogs | None = None


@dataclass
class InfrastructureConfig:
    """Infrastructure configuration resource."""

    networks: NetworkConfig = field(default_factory=NetworkConfig)


@dataclass
class Subnet:
    """A subnet that was created."""

    name: str = ""
    purpose: SubnetPurpose | str = ""


@dataclass
class NetworkStatus:
    """Current status of the infrastructure networks."""

    vpc: VPC = field(default_factory=VPC)
    subnets: list[Subnet] = field(default_factory=list)
    nat_ips: list[NatIP] = field(default_factory=list)


@dataclass
class InfrastructureStatus:
    """Information about created infrastructure resources."""

    networks: NetworkStatus = field(default_factory=NetworkStatus)
    service_account_email: str = ""


# Worker


@dataclass
class GPU:
    """GPU to attach to the VMs."""

    accelerator_type: str = ""
    count: int = 0


@dataclass
class DiskEncryption:
    """Customer-managed encryption settings for a disk."""

    kms_key_name: str | None = None
    kms_key_service_account: str | None = None


@dataclass
class Volume:
    """Settings for the disks attached to VMs."""

    local_ssd_interface: str | None = None
    encryption: DiskEncryption | None = None


@dataclass
class ServiceAccount:
    """A GCP service account and its scopes."""

    email: str = ""
    scopes: list[str] = field(default_factory=list)


@dataclass
class WorkerConfig:
    """Configuration settings for the worker nodes."""

    gpu: GPU | None = None
    volume: Volume | None = None
    min_cpu_platform: str | None = None
    service_account: ServiceAccount | None = None


@dataclass
class MachineImage:
    """Maps a logical image name and version to a GCP image path."""

    name: str = ""
    version: str = ""
    image: str = ""
    architecture: str | None = None


@dataclass
class WorkerStatus:
    """Information about created worker resources."""

    machine_images: list[MachineImage] = field(default_factory=list)


KNOWN_TYPES: tuple[type, ...] = (
    CloudProfileConfig,
    InfrastructureConfig,
    InfrastructureStatus,
    ControlPlaneConfig,
    WorkerStatus,
    WorkerConfig,
)
"""The top-level object types of the API group."""