from collections import Counter

import pytest

from gcpprovider import api
from gcpprovider.core import CoreVolume, DataVolume, Worker
from gcpprovider.field import ErrorType
from gcpprovider.validation_worker import validate_worker_config


def kinds(errors):
    return Counter((e.type, e.field) for e in errors)


@pytest.fixture
def workers():
    return [
        Worker(
            volume=CoreVolume(type="Volume", volume_size="30G"),
            zones=["zone1", "zone2"],
            data_volumes=[DataVolume(type="Volume", volume_size="30G")],
        ),
        Worker(
            volume=CoreVolume(type="Volume", volume_size="20G"),
            zones=["zone1", "zone2"],
            data_volumes=[DataVolume(type="SCRATCH", volume_size="30G")],
        ),
        Worker(
            volume=CoreVolume(type="Volume", volume_size="20G"),
            minimum=2,
            zones=["zone1", "zone2"],
        ),
    ]


def validate_for_workers(workers, worker_config):
    errors = []
    for worker in workers:
        errors += validate_worker_config(worker_config, worker.data_volumes)
    return errors


def test_valid_local_ssd_interface(workers):
    config = api.WorkerConfig(volume=api.Volume(local_ssd_interface="NVME"))
    assert validate_for_workers(workers, config) == []


def test_unsupported_local_ssd_interface(workers):
    config = api.WorkerConfig(volume=api.Volume(local_ssd_interface="Interface"))
    errors = validate_for_workers(workers, config)
    assert kinds(errors) == Counter({(ErrorType.NOT_SUPPORTED, "volume.localSSDInterface"): 1})
    assert errors[0].detail == 'supported values: "NVME", "SCSI"'


def test_missing_local_ssd_interface(workers):
    errors = validate_for_workers(workers, None)
    assert kinds(errors) == Counter({(ErrorType.REQUIRED, "volume.localSSDInterface"): 1})


def test_empty_service_account_email():
    config = api.WorkerConfig(service_account=api.ServiceAccount(email="", scopes=["scope-1"]))
    assert kinds(validate_worker_config(config, None)) == Counter({(ErrorType.REQUIRED, "serviceAccount.email"): 1})


def test_blank_kms_key_name():
    config = api.WorkerConfig(volume=api.Volume(encryption=api.DiskEncryption(kms_key_name="  ")))
    assert kinds(validate_worker_config(config, None)) == Counter(
        {(ErrorType.REQUIRED, "volume.encryption.kmsKeyName"): 1}
    )


def test_empty_scopes():
    config = api.WorkerConfig(service_account=api.ServiceAccount(email="foo", scopes=[]))
    assert kinds(validate_worker_config(config, None)) == Counter({(ErrorType.REQUIRED, "serviceAccount.scopes"): 1})


def test_empty_scope_entry():
    config = api.WorkerConfig(service_account=api.ServiceAccount(email="foo", scopes=["baz", ""]))
    assert kinds(validate_worker_config(config, None)) == Counter(
        {(ErrorType.REQUIRED, "serviceAccount.scopes[1]"): 1}
    )


def test_duplicate_scopes():
    config = api.WorkerConfig(service_account=api.ServiceAccount(email="foo", scopes=["baz", "bar", "baz"]))
    errors = validate_worker_config(config, None)
    assert kinds(errors) == Counter({(ErrorType.DUPLICATE, "serviceAccount.scopes[2]"): 1})
    assert errors[0].bad_value == "baz"


def test_valid_service_account():
    config = api.WorkerConfig(service_account=api.ServiceAccount(email="foo", scopes=["baz"]))
    assert validate_worker_config(config, None) == []


def test_gpu_accelerator_type_empty():
    config = api.WorkerConfig(
        gpu=api.GPU(accelerator_type="", count=1),
        service_account=api.ServiceAccount(email="foo", scopes=["baz"]),
    )
    assert kinds(validate_worker_config(config, None)) == Counter({(ErrorType.REQUIRED, "gpu.acceleratorType"): 1})


def test_gpu_count_zero():
    config = api.WorkerConfig(
        gpu=api.GPU(accelerator_type="foo", count=0),
        service_account=api.ServiceAccount(email="foo", scopes=["baz"]),
    )
    assert kinds(validate_worker_config(config, None)) == Counter({(ErrorType.FORBIDDEN, "gpu.count"): 1})


def test_valid_gpu():
    config = api.WorkerConfig(
        gpu=api.GPU(accelerator_type="foo", count=1),
        service_account=api.ServiceAccount(email="foo", scopes=["baz"]),
    )
    assert validate_worker_config(config, None) == []


def test_valid_kms_key_name():
    config = api.WorkerConfig(volume=api.Volume(encryption=api.DiskEncryption(kms_key_name="key")))
    assert validate_worker_config(config, [DataVolume(type="pd-standard")]) == []