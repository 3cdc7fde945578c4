"""Versioned (v1alpha1) wire format of the provider's API types.

Documents are JSON or YAML objects carrying ``apiVersion`` and ``kind``.
Decoding yields the internal types from :mod:`gcpprovider.api` with the
v1alpha1 defaults applied; encoding produces compact JSON.
"""

from __future__ import annotations

import json
import math
import struct
from dataclasses import dataclass
from enum import Enum
from typing import Any

import yaml

from gcpprovider import api

VERSION = "v1alpha1"
"""The version name of this representation."""

API_VERSION = f"{api.GROUP_NAME}/{VERSION}"
"""The ``apiVersion`` value of versioned documents."""

ARCHITECTURE_AMD64 = "amd64"
"""The CPU architecture assumed when none is given."""

_INT32_MIN = -(2**31)
_INT32_MAX = 2**31 - 1


class DecodeError(ValueError):
    """Raised when a document cannot be decoded into an API object."""


def set_defaults_machine_image_version(obj: api.MachineImageVersion) -> None:
    """Default the architecture of a machine image version to amd64."""
    if obj.architecture is None:
        obj.architecture = ARCHITECTURE_AMD64


def set_defaults_storage(obj: api.Storage) -> None:
    """Default both managed storage class flags to true."""
    if obj.managed_default_storage_class is None:
        obj.managed_default_storage_class = True
    if obj.managed_default_volume_snapshot_class is None:
        obj.managed_default_volume_snapshot_class = True


def resource(resource: str) -> api.GroupResource:
    """Qualify an unqualified resource with the provider's API group."""
    return api.GroupResource(group=api.GROUP_NAME, resource=resource)


# Field schema

_STR = "string"
_INT32 = "int32"
_BOOL = "bool"
_FLOAT32 = "float32"
_PURPOSE = "subnet purpose"
_BOOL_MAP = "map of booleans"


@dataclass(frozen=True)
class _ListOf:
    item: Any


@dataclass(frozen=True)
class _Field:
    json_name: str
    attr: str
    kind: Any
    omitempty: bool = False
    pointer: bool = False


def _opt(json_name: str, attr: str, kind: Any) -> _Field:
    """An optional field that is left out when unset."""
    return _Field(json_name, attr, kind, omitempty=True, pointer=True)


_SCHEMA: dict[type, tuple[_Field, ...]] = {
    api.MachineImageVersion: (
        _Field("version", "version", _STR),
        _Field("image", "image", _STR),
        _opt("architecture", "architecture", _STR),
    ),
    api.MachineImages: (
        _Field("name", "name", _STR),
        _Field("versions", "versions", _ListOf(api.MachineImageVersion)),
    ),
    api.CloudProfileConfig: (
        _Field("machineImages", "machine_images", _ListOf(api.MachineImages)),
    ),
    api.CloudControllerManagerConfig: (
        _Field("featureGates", "feature_gates", _BOOL_MAP, omitempty=True),
    ),
    api.Storage: (
        _opt("managedDefaultStorageClass", "managed_default_storage_class", _BOOL),
        _opt("managedDefaultVolumeSnapshotClass", "managed_default_volume_snapshot_class", _BOOL),
    ),
    api.ControlPlaneConfig: (
        _Field("zone", "zone", _STR),
        _opt("cloudControllerManager", "cloud_controller_manager", api.CloudControllerManagerConfig),
        _opt("storage", "storage", api.Storage),
    ),
    api.CloudRouter: (_Field("name", "name", _STR, omitempty=True),),
    api.VPC: (
        _Field("name", "name", _STR, omitempty=True),
        _opt("cloudRouter", "cloud_router", api.CloudRouter),
    ),
    api.EndpointIndependentMapping: (_Field("enabled", "enabled", _BOOL),),
    api.NatIP: (_Field("ip", "ip", _STR),),
    api.NatIPName: (_Field("name", "name", _STR),),
    api.CloudNAT: (
        _opt("endpointIndependentMapping", "endpoint_independent_mapping", api.EndpointIndependentMapping),
        _opt("minPortsPerVM", "min_ports_per_vm", _INT32),
        _opt("maxPortsPerVM", "max_ports_per_vm", _INT32),
        _Field("enableDynamicPortAllocation", "enable_dynamic_port_allocation", _BOOL, omitempty=True),
        _Field("natIPNames", "nat_ip_names", _ListOf(api.NatIPName), omitempty=True),
        _opt("icmpIdleTimeoutSec", "icmp_idle_timeout_sec", _INT32),
        _opt("tcpEstablishedIdleTimeoutSec", "tcp_established_idle_timeout_sec", _INT32),
        _opt("tcpTimeWaitTimeoutSec", "tcp_time_wait_timeout_sec", _INT32),
        _opt("tcpTransitoryIdleTimeoutSec", "tcp_transitory_idle_timeout_sec", _INT32),
        _opt("udpIdleTimeoutSec", "udp_idle_timeout_sec", _INT32),
    ),
    api.FlowLogs: (
        _opt("aggregationInterval", "aggregation_interval", _STR),
        _opt("flowSampling", "flow_sampling", _FLOAT32),
        _opt("metadata", "metadata", _STR),
    ),
    api.NetworkConfig: (
        _opt("vpc", "vpc", api.VPC),
        _opt("cloudNAT", "cloud_nat", api.CloudNAT),
        _opt("internal", "internal", _STR),
        _Field("worker", "worker", _STR),
        _Field("workers", "workers", _STR),
        _opt("flowLogs", "flow_logs", api.FlowLogs),
    ),
    api.InfrastructureConfig: (_Field("networks", "networks", api.NetworkConfig),),
    api.Subnet: (
        _Field("name", "name", _STR),
        _Field("purpose", "purpose", _PURPOSE),
    ),
    api.NetworkStatus: (
        _Field("vpc", "vpc", api.VPC),
        _Field("subnets", "subnets", _ListOf(api.Subnet)),
        _Field("natIPs", "nat_ips", _ListOf(api.NatIP), omitempty=True),
    ),
    api.InfrastructureStatus: (
        _Field("networks", "networks", api.NetworkStatus),
        _Field("serviceAccountEmail", "service_account_email", _STR),
    ),
    api.GPU: (
        _Field("acceleratorType", "accelerator_type", _STR),
        _Field("count", "count", _INT32),
    ),
    api.DiskEncryption: (
        _Field("kmsKeyName", "kms_key_name", _STR, pointer=True),
        _opt("kmsKeyServiceAccount", "kms_key_service_account", _STR),
    ),
    api.Volume: (
        _opt("interface", "local_ssd_interface", _STR),
        _opt("encryption", "encryption", api.DiskEncryption),
    ),
    api.ServiceAccount: (
        _Field("email", "email", _STR),
        _Field("scopes", "scopes", _ListOf(_STR)),
    ),
    api.WorkerConfig: (
        _opt("gpu", "gpu", api.GPU),
        _opt("volume", "volume", api.Volume),
        _opt("minCpuPlatform", "min_cpu_platform", _STR),
        _opt("serviceAccount", "service_account", api.ServiceAccount),
    ),
    api.MachineImage: (
        _Field("name", "name", _STR),
        _Field("version", "version", _STR),
        _Field("image", "image", _STR),
        _opt("architecture", "architecture", _STR),
    ),
    api.WorkerStatus: (
        _Field("machineImages", "machine_images", _ListOf(api.MachineImage), omitempty=True),
    ),
}

_FIELDS_BY_JSON = {cls: {f.json_name: f for f in fields} for cls, fields in _SCHEMA.items()}
_KINDS = {cls.__name__: cls for cls in api.KNOWN_TYPES}


# YAML loading


class _StrictLoader(yaml.SafeLoader):
    """A safe loader that rejects duplicate keys in mappings."""


def _construct_unique_mapping(loader: yaml.SafeLoader, node: yaml.MappingNode, deep: bool = False) -> Any:
    seen: set[Any] = set()
    for key_node, _ in node.value:
        key = loader.construct_object(key_node, deep=deep)
        try:
            if key in seen:
                raise DecodeError(f'strict decoding error: duplicate field "{key}"')
            seen.add(key)
        except TypeError:
            continue
    return loader.construct_mapping(node, deep=deep)


_StrictLoader.add_constructor(yaml.resolver.BaseResolver.DEFAULT_MAPPING_TAG, _construct_unique_mapping)


# Decoding


def _json_type(value: Any) -> str:
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def _type_error(path: str, expected: str, value: Any) -> DecodeError:
    return DecodeError(f'cannot decode field "{path}": expected {expected}, got {_json_type(value)}')


def _shortest_float32(value: float) -> float:
    """Round to float32 precision and return the shortest decimal that keeps it."""
    if not math.isfinite(value):
        raise ValueError(f"{value} is not a finite number")
    single = struct.unpack("<f", struct.pack("<f", value))[0]
    for precision in range(1, 10):
        candidate = float(f"{single:.{precision}g}")
        if struct.unpack("<f", struct.pack("<f", candidate))[0] == single:
            return candidate
    return single


def _zero(kind: Any) -> Any:
    if isinstance(kind, type):
        return kind()
    if isinstance(kind, _ListOf):
        return []
    return {_STR: "", _PURPOSE: "", _INT32: 0, _BOOL: False, _FLOAT32: 0.0, _BOOL_MAP: {}}[kind]


def _decode_value(kind: Any, value: Any, path: str, strict_errors: list[str]) -> Any:
    if isinstance(kind, type):
        return _decode_object(kind, value, path, strict_errors)
    if isinstance(kind, _ListOf):
        if not isinstance(value, list):
            raise _type_error(path, "array", value)
        return [
            _zero(kind.item) if item is None else _decode_value(kind.item, item, f"{path}[{i}]", strict_errors)
            for i, item in enumerate(value)
        ]
    if kind in (_STR, _PURPOSE):
        if not isinstance(value, str):
            raise _type_error(path, "string", value)
        if kind == _PURPOSE:
            try:
                return api.SubnetPurpose(value)
            except ValueError:
                return value
        return value
    if kind == _BOOL:
        if not isinstance(value, bool):
            raise _type_error(path, "boolean", value)
        return value
    if kind == _INT32:
        if isinstance(value, bool) or not isinstance(value, int):
            raise _type_error(path, "int32", value)
        if not _INT32_MIN <= value <= _INT32_MAX:
            raise DecodeError(f'cannot decode field "{path}": {value} overflows int32')
        return value
    if kind == _FLOAT32:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise _type_error(path, "float32", value)
        try:
            return _shortest_float32(float(value))
        except (OverflowError, ValueError) as exc:
            raise DecodeError(f'cannot decode field "{path}": {value} is not a valid float32') from exc
    if kind == _BOOL_MAP:
        if not isinstance(value, dict):
            raise _type_error(path, "object", value)
        result: dict[str, bool] = {}
        for key, item in value.items():
            if not isinstance(key, str):
                raise _type_error(f"{path}.{key}", "string key", key)
            if not isinstance(item, bool):
                raise _type_error(f"{path}.{key}", "boolean", item)
            result[key] = item
        return result
    raise AssertionError(f"unknown field kind {kind!r}")


def _decode_object(
    cls: type, value: Any, path: str, strict_errors: list[str], top_level: bool = False
) -> Any:
    if not isinstance(value, dict):
        raise _type_error(path or cls.__name__, "object", value)
    fields = _FIELDS_BY_JSON[cls]
    obj = cls()
    for key, item in value.items():
        if top_level and key in ("apiVersion", "kind"):
            continue
        child = f"{path}.{key}" if path else str(key)
        spec = fields.get(key) if isinstance(key, str) else None
        if spec is None:
            strict_errors.append(f'unknown field "{child}"')
            continue
        if item is None:
            continue
        setattr(obj, spec.attr, _decode_value(spec.kind, item, child, strict_errors))
    return obj


def _apply_defaults(obj: Any) -> None:
    if isinstance(obj, api.CloudProfileConfig):
        for image in obj.machine_images:
            for version in image.versions:
                set_defaults_machine_image_version(version)
    elif isinstance(obj, api.ControlPlaneConfig) and obj.storage is not None:
        set_defaults_storage(obj.storage)


def decode(data: bytes | str, strict: bool = True) -> Any:
    """Decode a versioned JSON or YAML document into an internal API object.

    In strict mode unknown and duplicate fields are errors; otherwise they are
    ignored. Type mismatches are always errors.
    """
    if isinstance(data, bytes):
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise DecodeError(f"document is not valid UTF-8: {exc}") from exc
    else:
        text = data
    loader = _StrictLoader if strict else yaml.SafeLoader
    try:
        document = yaml.load(text, Loader=loader)
    except yaml.YAMLError as exc:
        raise DecodeError(f"invalid document: {exc}") from exc
    if not isinstance(document, dict):
        raise DecodeError("Object 'Kind' is missing in document")
    kind_name = document.get("kind")
    if not isinstance(kind_name, str) or not kind_name:
        raise DecodeError("Object 'Kind' is missing in document")
    api_version = document.get("apiVersion")
    cls = _KINDS.get(kind_name)
    if api_version != API_VERSION or cls is None:
        raise DecodeError(f'no kind "{kind_name}" is registered for version "{api_version}"')
    strict_errors: list[str] = []
    obj = _decode_object(cls, document, "", strict_errors, top_level=True)
    if strict and strict_errors:
        raise DecodeError("strict decoding error: " + ", ".join(strict_errors))
    _apply_defaults(obj)
    return obj


# Encoding


def _is_empty(value: Any, pointer: bool) -> bool:
    if value is None:
        return True
    if pointer:
        return False
    if isinstance(value, (str, list, dict)):
        return len(value) == 0
    if isinstance(value, (bool, int, float)):
        return not value
    return False


def _encode_value(kind: Any, value: Any) -> Any:
    if value is None:
        return None
    if isinstance(kind, type):
        return _encode_object(kind, value)
    if isinstance(kind, _ListOf):
        return [_encode_value(kind.item, item) for item in value]
    if kind == _BOOL_MAP:
        return dict(value)
    if kind == _FLOAT32:
        return _shortest_float32(float(value))
    if kind == _PURPOSE:
        return value.value if isinstance(value, Enum) else value
    return value


def _encode_object(cls: type, obj: Any) -> dict[str, Any]:
    if not isinstance(obj, cls):
        raise TypeError(f"expected {cls.__name__}, got {type(obj).__name__}")
    out: dict[str, Any] = {}
    for spec in _SCHEMA[cls]:
        value = getattr(obj, spec.attr)
        if spec.omitempty and _is_empty(value, spec.pointer):
            continue
        out[spec.json_name] = _encode_value(spec.kind, value)
    return out


def encode(obj: Any) -> bytes:
    """Encode an internal API object as a versioned JSON document."""
    cls = type(obj)
    if cls not in api.KNOWN_TYPES:
        raise TypeError(f"no kind is registered for the type {cls.__name__}")
    document: dict[str, Any] = {"kind": cls.__name__, "apiVersion": API_VERSION}
    document.update(_encode_object(cls, obj))
    text = json.dumps(document, ensure_ascii=False, separators=(",", ":"))
    return (text + "\n").encode("utf-8")