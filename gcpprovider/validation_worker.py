"""Validation of WorkerConfig objects."""

from __future__ import annotations

from collections.abc import Iterable

from gcpprovider import api
from gcpprovider.core import DataVolume
from gcpprovider.field import ErrorList, Path, duplicate, forbidden, not_supported, required

VALID_LOCAL_SSD_INTERFACES = ("NVME", "SCSI")
"""Interfaces a local SSD may use."""


def validate_worker_config(
    worker_config: api.WorkerConfig | None, data_volumes: Iterable[DataVolume] | None
) -> ErrorList:
    """Validate a WorkerConfig together with the data volumes of its pool."""
    errors: ErrorList = []
    interface_path = Path("volume", "localSSDInterface")

    for volume in data_volumes or ():
        if volume.type != "SCRATCH":
            continue
        interface = (
            worker_config.volume.local_ssd_interface
            if worker_config is not None and worker_config.volume is not None
            else None
        )
        if interface is None:
            errors.append(required(interface_path, "must be set when using SCRATCH volumes"))
        elif interface not in VALID_LOCAL_SSD_INTERFACES:
            errors.append(not_supported(interface_path, interface, VALID_LOCAL_SSD_INTERFACES))

    if worker_config is not None:
        errors += _validate_gpu(worker_config.gpu, Path("gpu"))
        errors += _validate_service_account(worker_config.service_account, Path("serviceAccount"))
        if worker_config.volume is not None:
            errors += _validate_disk_encryption(worker_config.volume.encryption, Path("volume", "encryption"))

    return errors


def _validate_gpu(gpu: api.GPU | None, fld_path: Path) -> ErrorList:
    if gpu is None:
        return []
    errors: ErrorList = []
    if gpu.accelerator_type == "":
        errors.append(required(fld_path.child("acceleratorType"), "must be set when providing gpu"))
    if gpu.count <= 0:
        errors.append(forbidden(fld_path.child("count"), "must be > 0 when providing gpu"))
    return errors


def _validate_service_account(sa: api.ServiceAccount | None, fld_path: Path) -> ErrorList:
    if sa is None:
        return []
    errors: ErrorList = []
    if sa.email == "":
        errors.append(required(fld_path.child("email"), "must be set when providing service account"))

    if not sa.scopes:
        errors.append(required(fld_path.child("scopes"), "must have at least one scope"))
        return errors

    seen: set[str] = set()
    for i, scope in enumerate(sa.scopes):
        scope_path = fld_path.child("scopes").index(i)
        if scope == "":
            errors.append(required(scope_path, "must not be empty"))
        elif scope in seen:
            errors.append(duplicate(scope_path, scope))
        else:
            seen.add(scope)
    return errors


def _validate_disk_encryption(encryption: api.DiskEncryption | None, fld_path: Path) -> ErrorList:
    if encryption is None:
        return []
    if encryption.kms_key_name is None or not encryption.kms_key_name.strip():
        return [required(fld_path.child("kmsKeyName"), "must be specified when configuring disk encryption")]
    return []