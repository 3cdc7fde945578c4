import argparse

import pytest

from gcpprovider.config import (
    API_VERSION,
    ETCD,
    Config,
    ConfigError,
    ConfigOptions,
    ControllerConfiguration,
    ETCDBackup,
    ETCDStorage,
    load,
    load_from_file,
)

FULL_DOCUMENT = f"""\
apiVersion: {API_VERSION}
kind: ControllerConfiguration
clientConnection:
  acceptContentTypes: application/json
  contentType: application/json
  qps: 100
  burst: 130
etcd:
  storage:
    className: gardener.cloud-fast
    capacity: 25Gi
  backup:
    schedule: "0 */24 * * *"
healthCheckConfig:
  syncPeriod: 30s
featureGates:
  SomeGate: true
  OtherGate: false
"""


def test_versioned_group_document_is_accepted():
    document = (
        "apiVersion: gcp.provider.extensions.config.gardener.cloud/v1alpha1\n"
        "kind: ControllerConfiguration\n"
        "featureGates:\n"
        "  SomeGate: true\n"
    )
    cfg = load(document)
    assert cfg == ControllerConfiguration(feature_gates={"SomeGate": True})
    assert API_VERSION == "gcp.provider.extensions.config.gardener.cloud/v1alpha1"


@pytest.mark.parametrize("data", [b"", ""])
def test_empty_input_gives_empty_configuration(data):
    assert load(data) == ControllerConfiguration()


def test_load_full_document():
    cfg = load(FULL_DOCUMENT.encode())
    assert cfg.etcd == ETCD(
        storage=ETCDStorage(class_name="gardener.cloud-fast", capacity="25Gi"),
        backup=ETCDBackup(schedule="0 */24 * * *"),
    )
    assert cfg.feature_gates == {"SomeGate": True, "OtherGate": False}
    assert cfg.health_check_config == {"syncPeriod": "30s"}
    assert cfg.client_connection["burst"] == 130


def test_unknown_fields_are_ignored():
    cfg = load(f"apiVersion: {API_VERSION}\nkind: ControllerConfiguration\nunknown: 1\n")
    assert cfg == ControllerConfiguration()


def test_json_document():
    cfg = load(
        '{"apiVersion": "%s", "kind": "ControllerConfiguration",'
        ' "etcd": {"backup": {"schedule": "@daily"}}}' % API_VERSION
    )
    assert cfg.etcd.backup.schedule == "@daily"
    assert cfg.etcd.storage == ETCDStorage()


@pytest.mark.parametrize(
    "document",
    [
        "kind: ControllerConfiguration\n",
        f"apiVersion: {API_VERSION}\n",
        f"apiVersion: {API_VERSION}\nkind: Other\n",
        "apiVersion: other.group/v1alpha1\nkind: ControllerConfiguration\n",
        "- a\n- b\n",
    ],
)
def test_unregistered_or_missing_kind_raises(document):
    with pytest.raises(ConfigError):
        load(document)


@pytest.mark.parametrize(
    "body",
    [
        "featureGates:\n  SomeGate: yes-please\n",
        "etcd:\n  storage:\n    className: 5\n",
        "etcd:\n  storage:\n    capacity: lots\n",
        "etcd: []\n",
        "clientConnection: text\n",
    ],
)
def test_malformed_fields_raise(body):
    with pytest.raises(ConfigError):
        load(f"apiVersion: {API_VERSION}\nkind: ControllerConfiguration\n{body}")


def test_invalid_yaml_raises():
    with pytest.raises(ConfigError):
        load("apiVersion: [unclosed\n")


def test_load_from_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(FULL_DOCUMENT)
    assert load_from_file(path) == load(FULL_DOCUMENT)


def test_load_from_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_from_file(tmp_path / "missing.yaml")


def test_options_returns_independent_copy():
    original = load(FULL_DOCUMENT)
    config = Config(original)
    copy = config.options()
    assert copy == original
    copy.feature_gates["SomeGate"] = False
    copy.etcd.backup.schedule = None
    assert original.feature_gates["SomeGate"] is True
    assert original.etcd.backup.schedule == "0 */24 * * *"


def test_complete_without_path_raises():
    options = ConfigOptions()
    with pytest.raises(ConfigError, match="config file path not set"):
        options.complete()
    assert options.completed() is None


def test_add_arguments_and_complete(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(FULL_DOCUMENT)
    options = ConfigOptions()
    parser = argparse.ArgumentParser()
    options.add_arguments(parser)
    namespace = parser.parse_args(["--config-file", str(path)])
    assert namespace.config_file_path == str(path)

    options.config_file_path = namespace.config_file_path
    options.complete()
    completed = options.completed()
    assert completed.config == load(FULL_DOCUMENT)


def test_add_arguments_default_is_empty():
    parser = argparse.ArgumentParser()
    ConfigOptions().add_arguments(parser)
    assert parser.parse_args([]).config_file_path == ""


def test_complete_with_missing_file_raises(tmp_path):
    options = ConfigOptions(config_file_path=str(tmp_path / "nope.yaml"))
    with pytest.raises(FileNotFoundError):
        options.complete()
    assert options.completed() is None