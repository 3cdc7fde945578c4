"""The parts of the Gardener core shoot and cloud profile model used by validation."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field


@dataclass
class ExpirableVersion:
    """A version that may carry an expiration date and classification."""

    version: str = ""
    expiration_date: str | None = None
    classification: str | None = None


@dataclass
class CoreMachineImageVersion(ExpirableVersion):
    """A version of a machine image offered by a cloud profile."""

    architectures: list[str] = field(default_factory=list)


@dataclass
class CoreMachineImage:
    """A machine image offered by a cloud profile."""

    name: str = ""
    versions: list[CoreMachineImageVersion] = field(default_factory=list)


@dataclass
class Networking:
    """Network ranges of a shoot."""

    type: str | None = None
    nodes: str | None = None
    pods: str | None = None
    services: str | None = None


@dataclass
class CoreVolume:
    """The root volume of a worker pool."""

    name: str | None = None
    type: str | None = None
    volume_size: str = ""


@dataclass
class DataVolume:
    """An additional data volume of a worker pool."""

    name: str = ""
    type: str | None = None
    volume_size: str = ""


@dataclass
class WorkerKubernetes:
    """Kubernetes settings of a worker pool."""

    version: str | None = None


@dataclass
class Worker:
    """A worker pool of a shoot."""

    name: str = ""
    zones: list[str] = field(default_factory=list)
    volume: CoreVolume | None = None
    data_volumes: list[DataVolume] = field(default_factory=list)
    kubernetes: WorkerKubernetes | None = None
    minimum: int = 0
    maximum: int = 0


def find_worker_by_name(workers: Iterable[Worker] | None, name: str) -> Worker | None:
    """Return the first worker pool with the given name, or None."""
    return next((worker for worker in workers or () if worker.name == name), None)


def should_enforce_immutability(new_zones: Sequence[str] | None, old_zones: Sequence[str] | None) -> bool:
    """Tell whether a zone list change must be checked for immutability.

    The only change that is let through is appending new zones to the end.
    """
    new = list(new_zones or ())
    old = list(old_zones or ())
    return not (len(new) >= len(old) and new[: len(old)] == old)