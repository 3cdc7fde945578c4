"""Validation of the GCP-specific parts of a shoot."""

from __future__ import annotations

from collections.abc import Iterable

from gcpprovider.core import CoreVolume, Networking, Worker, find_worker_by_name, should_enforce_immutability
from gcpprovider.field import ErrorList, Path, required, validate_immutable_field


def _child(path: Path | None, *names: str) -> Path:
    return Path(*names) if path is None else path.child(*names)


def _index(path: Path | None, index: int) -> Path:
    return (Path() if path is None else path).index(index)


def validate_networking(networking: Networking, fld_path: Path | None = None) -> ErrorList:
    """Validate the network settings of a shoot."""
    if networking.nodes is None:
        return [required(_child(fld_path, "nodes"), "a nodes CIDR must be provided for GCP shoots")]
    return []


def _validate_volume(volume: CoreVolume, fld_path: Path) -> ErrorList:
    errors: ErrorList = []
    if volume.type is None:
        errors.append(required(fld_path.child("type"), "must not be empty"))
    if volume.volume_size == "":
        errors.append(required(fld_path.child("size"), "must not be empty"))
    return errors


def validate_workers(workers: Iterable[Worker] | None, fld_path: Path | None = None) -> ErrorList:
    """Validate the worker pools of a shoot."""
    errors: ErrorList = []
    for i, worker in enumerate(workers or ()):
        worker_path = _index(fld_path, i)
        if worker.volume is None:
            errors.append(required(worker_path.child("volume"), "must not be nil"))
        else:
            errors += _validate_volume(worker.volume, worker_path.child("volume"))
        if not worker.zones:
            errors.append(required(worker_path.child("zones"), "at least one zone must be configured"))
    return errors


def validate_workers_update(
    old_workers: Iterable[Worker] | None,
    new_workers: Iterable[Worker] | None,
    fld_path: Path | None = None,
) -> ErrorList:
    """Validate changes to worker pools; zones may only be appended."""
    old = list(old_workers or ())
    errors: ErrorList = []
    for i, new_worker in enumerate(new_workers or ()):
        old_worker = find_worker_by_name(old, new_worker.name)
        if old_worker is not None and should_enforce_immutability(new_worker.zones, old_worker.zones):
            errors += validate_immutable_field(
                new_worker.zones, old_worker.zones, _index(fld_path, i).child("zones")
            )
    return errors