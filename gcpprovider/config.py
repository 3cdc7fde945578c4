"""Component configuration of the GCP provider controller.

The configuration is read from a versioned YAML or JSON document of kind
``ControllerConfiguration`` in the ``v1alpha1`` version of the config API group.
"""

from __future__ import annotations

import argparse
import copy
import os
import re
from dataclasses import dataclass, field
from typing import Any

import yaml

GROUP_NAME = "gcp.provider.extensions.config.gardener.cloud"
"""The API group of the controller configuration."""

VERSION = "v1alpha1"
"""The only serialised version of the controller configuration."""

API_VERSION = f"{GROUP_NAME}/{VERSION}"
"""The ``apiVersion`` value of configuration documents."""

KIND = "ControllerConfiguration"
"""The ``kind`` value of configuration documents."""

_DEFAULT_KIND = "Config"

_QUANTITY = re.compile(
    r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[KMGTPE]i|[numkMGTPE]|[eE][+-]?\d+)?$"
)


class ConfigError(ValueError):
    """Raised when the controller configuration is missing or malformed."""


@dataclass
class ETCDStorage:
    """Storage settings for the etcd-main volume claims."""

    class_name: str | None = None
    capacity: str | None = None


@dataclass
class ETCDBackup:
    """Backup settings for etcd."""

    schedule: str | None = None


@dataclass
class ETCD:
    """The etcd configuration."""

    storage: ETCDStorage = field(default_factory=ETCDStorage)
    backup: ETCDBackup = field(default_factory=ETCDBackup)


@dataclass
class ControllerConfiguration:
    """Configuration of the GCP provider controller."""

    client_connection: dict[str, Any] | None = None
    etcd: ETCD = field(default_factory=ETCD)
    health_check_config: dict[str, Any] | None = None
    feature_gates: dict[str, bool] | None = None


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


def _type_error(path: str, expected: str, value: Any) -> ConfigError:
    return ConfigError(f'cannot decode field "{path}": expected {expected}, got {_json_type(value)}')


def _object(value: Any, path: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise _type_error(path, "object", value)
    return value


def _string(value: Any, path: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise _type_error(path, "string", value)
    return value


def _quantity(value: Any, path: str) -> str | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise _type_error(path, "quantity", value)
    text = str(value).strip()
    if not _QUANTITY.match(text):
        raise ConfigError(f'cannot decode field "{path}": quantities must match the regular expression')
    return text


def _plain_mapping(value: Any, path: str) -> dict[str, Any] | None:
    if value is None:
        return None
    return dict(_object(value, path))


def _feature_gates(value: Any, path: str) -> dict[str, bool] | None:
    if value is None:
        return None
    gates: dict[str, bool] = {}
    for name, enabled in _object(value, path).items():
        if not isinstance(name, str):
            raise _type_error(f"{path}.{name}", "string key", name)
        if not isinstance(enabled, bool):
            raise _type_error(f"{path}.{name}", "boolean", enabled)
        gates[name] = enabled
    return gates


def _etcd(value: Any) -> ETCD:
    etcd = ETCD()
    if value is None:
        return etcd
    document = _object(value, "etcd")
    storage = document.get("storage")
    if storage is not None:
        storage = _object(storage, "etcd.storage")
        etcd.storage = ETCDStorage(
            class_name=_string(storage.get("className"), "etcd.storage.className"),
            capacity=_quantity(storage.get("capacity"), "etcd.storage.capacity"),
        )
    backup = document.get("backup")
    if backup is not None:
        backup = _object(backup, "etcd.backup")
        etcd.backup = ETCDBackup(schedule=_string(backup.get("schedule"), "etcd.backup.schedule"))
    return etcd


def load(data: bytes | str) -> ControllerConfiguration:
    """Decode a configuration document; empty input yields an empty configuration."""
    if not data:
        return ControllerConfiguration()
    if isinstance(data, bytes):
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ConfigError(f"configuration is not valid UTF-8: {exc}") from exc
    else:
        text = data
    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid configuration document: {exc}") from exc
    if not isinstance(document, dict):
        raise ConfigError("Object 'Kind' is missing in document")

    kind = document.get("kind") or _DEFAULT_KIND
    api_version = document.get("apiVersion") or VERSION
    if kind != KIND or api_version != API_VERSION:
        raise ConfigError(f'no kind "{kind}" is registered for version "{api_version}"')

    return ControllerConfiguration(
        client_connection=_plain_mapping(document.get("clientConnection"), "clientConnection"),
        etcd=_etcd(document.get("etcd")),
        health_check_config=_plain_mapping(document.get("healthCheckConfig"), "healthCheckConfig"),
        feature_gates=_feature_gates(document.get("featureGates"), "featureGates"),
    )


def load_from_file(filename: str | os.PathLike[str]) -> ControllerConfiguration:
    """Read and decode a configuration file."""
    with open(filename, "rb") as handle:
        return load(handle.read())


# Command line


@dataclass
class Config:
    """A completed controller configuration."""

    config: ControllerConfiguration

    def options(self) -> ControllerConfiguration:
        """Return an independent copy of the configuration."""
        return copy.deepcopy(self.config)


@dataclass
class ConfigOptions:
    """Command line options that locate the controller configuration."""

    config_file_path: str = ""
    _config: Config | None = field(default=None, init=False, repr=False)

    def add_arguments(self, parser: argparse.ArgumentParser) -> None:
        """Register the ``--config-file`` option on the parser."""
        parser.add_argument(
            "--config-file",
            dest="config_file_path",
            default=self.config_file_path,
            help="path to the controller manager configuration file",
        )

    def complete(self) -> None:
        """Load the configuration from the configured file."""
        if not self.config_file_path:
            raise ConfigError("config file path not set")
        self._config = Config(load_from_file(self.config_file_path))

    def completed(self) -> Config | None:
        """Return the completed configuration, or None before a successful complete()."""
        return self._config