# gcpprovider

Typed models, defaulting, decoding and validation for the provider-specific
configuration of Kubernetes clusters running on Google Cloud Platform.

## What is in the package

- `gcpprovider.api` – the internal API types as dataclasses: `CloudProfileConfig`,
  `ControlPlaneConfig`, `InfrastructureConfig`, `InfrastructureStatus`,
  `WorkerConfig`, `WorkerStatus` and the types they are built from
  (`NetworkConfig`, `VPC`, `CloudRouter`, `CloudNAT`, `FlowLogs`, `Subnet`,
  `MachineImage`, `GPU`, `Volume`, `DiskEncryption`, `ServiceAccount`, ...),
  plus `kind()` and `resource()` to qualify names with the API group.
- `gcpprovider.v1alpha1` – `decode(data, strict=True)` turns a JSON or YAML
  document with `apiVersion: gcp.provider.extensions.gardener.cloud/v1alpha1`
  into an internal object, and `encode(obj)` writes one back as compact JSON.
  Strict decoding rejects unknown and duplicate fields; type mismatches are
  always rejected. Failures raise `DecodeError`. Decoding applies the defaults:
  a machine image version without an architecture becomes `amd64`
  (`set_defaults_machine_image_version`), and the managed default storage and
  volume snapshot class flags become `True` (`set_defaults_storage`).
- `gcpprovider.helper` – `find_subnet_by_purpose`, `find_machine_image`,
  `find_image_from_cloud_profile`, which raise `LookupError` when nothing
  matches; `determine_error_codes(message)`, which returns every `ErrorCode`
  whose pattern matches a provider error message; and
  `infrastructure_config_from_raw`, `infrastructure_status_from_raw` and
  `cloud_profile_config_from_raw` for decoding provider config and status.
- `gcpprovider.field` – `Path` for field paths such as `workers[0].zones`,
  `FieldError` with an `ErrorType`, and the constructors `required`, `invalid`,
  `not_supported`, `forbidden`, `duplicate` and `validate_immutable_field`.
- `gcpprovider.cidr` – `CIDR`, a CIDR range tied to its field path, with
  `validate_parse`, `validate_not_overlap` and `validate_subset`, and
  `validate_cidr_is_canonical`.
- `gcpprovider.core` – the shoot and cloud profile types that validation needs
  (`Worker`, `CoreVolume`, `DataVolume`, `Networking`, `CoreMachineImage`, ...).
- Validators, each returning a list of `FieldError` (empty means valid):
  - `gcpprovider.validation_infrastructure`: `validate_infrastructure_config`,
    `validate_cloud_nat_config`, `validate_infrastructure_config_update`
  - `gcpprovider.validation_controlplane`: `validate_control_plane_config`,
    `validate_control_plane_config_update`
  - `gcpprovider.validation_cloudprofile`: `validate_cloud_profile_config`
  - `gcpprovider.validation_shoot`: `validate_networking`, `validate_workers`,
    `validate_workers_update`
  - `gcpprovider.validation_worker`: `validate_worker_config`
- `gcpprovider.config` – the controller's own configuration:
  `ControllerConfiguration`, `load(data)`, `load_from_file(filename)` and
  `ConfigOptions`, which adds a `--config-file` option to an
  `argparse.ArgumentParser` and loads the file on `complete()`.

## Validating an infrastructure configuration

```python
from gcpprovider.api import CloudRouter, InfrastructureConfig, NetworkConfig, VPC
from gcpprovider.validation_infrastructure import validate_infrastructure_config

infra = InfrastructureConfig(
    networks=NetworkConfig(
        vpc=VPC(name="my-vpc", cloud_router=CloudRouter(name="my-router")),
        workers="10.250.0.0/16",
    )
)

errors = validate_infrastructure_config(
    infra, "10.250.0.0/16", "100.96.0.0/11", "100.64.0.0/13"
)
for error in errors:
    print(error)
```

`validate_infrastructure_config_update(old, new)` reports changes to the VPC,
its cloud router and the internal range, and any worker CIDR that does not
contain the old one.

## Decoding a provider config

```python
from gcpprovider import v1alpha1

config = v1alpha1.decode(b"""
apiVersion: gcp.provider.extensions.gardener.cloud/v1alpha1
kind: ControlPlaneConfig
zone: europe-west1-b
storage: {}
""")
assert config.storage.managed_default_storage_class is True
```

## Finding a machine image

```python
from gcpprovider.helper import find_image_from_cloud_profile

image = find_image_from_cloud_profile(cloud_profile_config, "ubuntu", "1.2.3", "amd64")
```

## Classifying provider errors

```python
from gcpprovider.helper import determine_error_codes

codes = determine_error_codes("googleapi: Error 403: SERVICE_ACCOUNT_ACCESS_DENIED")
```

## Loading the controller configuration

```python
from gcpprovider.config import load_from_file

configuration = load_from_file("config.yaml")
```

`load(data)` does the same for bytes or text already in memory; empty input
yields an empty configuration. Problems in the document raise `ConfigError`.

## What the package does not do

The package works on configuration objects only. It does not call Google Cloud
APIs, does not talk to a Kubernetes cluster, runs no controllers or webhooks,
and installs no command-line program. Feature gates of the cloud-controller-manager
are checked against a small built-in table (`FEATURE_GATES` in
`gcpprovider.validation_controlplane`), not against a full list for every
Kubernetes release.