"""Validation of ControlPlaneConfig objects."""

from __future__ import annotations

import re
from collections.abc import Collection, Mapping
from dataclasses import dataclass

from gcpprovider import api
from gcpprovider.field import (
    ErrorList,
    ErrorType,
    FieldError,
    Path,
    forbidden,
    invalid,
    not_supported,
    required,
    validate_immutable_field,
)


@dataclass(frozen=True)
class FeatureGateRange:
    """The Kubernetes versions in which a feature gate can be set.

    ``added_in`` is inclusive, ``removed_in`` exclusive; ``None`` leaves that end open.
    """

    added_in: str | None = None
    removed_in: str | None = None


FEATURE_GATES: dict[str, FeatureGateRange] = {
    "AnyVolumeDataSource": FeatureGateRange(added_in="1.18"),
    "GracefulNodeShutdown": FeatureGateRange(added_in="1.20"),
    "TopologyAwareHints": FeatureGateRange(added_in="1.21"),
    "ReadWriteOncePod": FeatureGateRange(added_in="1.22"),
}
"""Feature gates known to the cloud-controller-manager and where they are supported."""

_VERSION = re.compile(r"^v?(\d+)\.(\d+)(?:\.(\d+))?")


def _parse_version(version: str) -> tuple[int, int]:
    match = _VERSION.match(version.strip())
    if match is None:
        raise ValueError(f"invalid version {version!r}")
    return int(match.group(1)), int(match.group(2))


def _is_supported(gate: FeatureGateRange, version: tuple[int, int]) -> bool:
    if gate.added_in is not None and version < _parse_version(gate.added_in):
        return False
    if gate.removed_in is not None and version >= _parse_version(gate.removed_in):
        return False
    return True


def _validate_feature_gates(
    feature_gates: Mapping[str, bool] | None, version: str, fld_path: Path
) -> ErrorList:
    errors: ErrorList = []
    for name in sorted(feature_gates or {}):
        path = fld_path.child(name)
        gate = FEATURE_GATES.get(name)
        if gate is None:
            errors.append(invalid(path, name, "unknown feature gate"))
            continue
        try:
            supported = _is_supported(gate, _parse_version(version))
        except ValueError as exc:
            errors.append(FieldError(ErrorType.INTERNAL, str(path), None, str(exc)))
            continue
        if not supported:
            errors.append(forbidden(path, f"not supported in Kubernetes version {version}"))
    return errors


def _child(path: Path | None, *names: str) -> Path:
    return Path(*names) if path is None else path.child(*names)


def validate_control_plane_config(
    control_plane_config: api.ControlPlaneConfig,
    allowed_zones: Collection[str],
    worker_zones: Collection[str],
    version: str,
    fld_path: Path | None = None,
) -> ErrorList:
    """Validate a ControlPlaneConfig against the region's and the workers' zones."""
    errors: ErrorList = []
    zone = control_plane_config.zone
    zone_path = _child(fld_path, "zone")

    if not zone:
        errors.append(required(zone_path, "must provide the name of a zone in this region"))
    elif zone not in allowed_zones:
        errors.append(not_supported(zone_path, zone, sorted(allowed_zones)))

    if zone not in worker_zones:
        errors.append(invalid(zone_path, zone, "must be part of at least one worker zone"))

    ccm = control_plane_config.cloud_controller_manager
    if ccm is not None:
        errors += _validate_feature_gates(
            ccm.feature_gates, version, _child(fld_path, "cloudControllerManager", "featureGates")
        )

    return errors


def validate_control_plane_config_update(
    old_config: api.ControlPlaneConfig,
    new_config: api.ControlPlaneConfig,
    fld_path: Path | None = None,
) -> ErrorList:
    """Validate a change from one ControlPlaneConfig to another."""
    return validate_immutable_field(new_config.zone, old_config.zone, _child(fld_path, "zone"))