"""Validation of CloudProfileConfig objects."""

from __future__ import annotations

import json
from collections.abc import Iterable

from gcpprovider import api
from gcpprovider.core import CoreMachineImage, ExpirableVersion
from gcpprovider.field import ErrorList, Path, not_supported, required

VALID_ARCHITECTURES = ("amd64", "arm64")
"""CPU architectures a machine image version may declare."""


def _q(value: object) -> str:
    return json.dumps(str(value), ensure_ascii=False)


def validate_cloud_profile_config(
    cp_config: api.CloudProfileConfig,
    machine_images: Iterable[CoreMachineImage] | None,
    fld_path: Path | None = None,
) -> ErrorList:
    """Check that every offered machine image version has an image mapping."""
    errors: ErrorList = []
    images_path = Path("machineImages") if fld_path is None else fld_path.child("machineImages")

    for image in machine_images or ():
        for i, image_config in enumerate(cp_config.machine_images or ()):
            if image.name == image_config.name:
                errors += _validate_versions(
                    image_config.versions or [],
                    image.versions or [],
                    images_path.index(i).child("versions"),
                )
                break
        else:
            if image.versions:
                errors.append(
                    required(images_path, f"must provide an image mapping for image {_q(image.name)}")
                )

    return errors


def _validate_versions(
    versions_config: list[api.MachineImageVersion],
    versions: Iterable[ExpirableVersion],
    fld_path: Path,
) -> ErrorList:
    errors: ErrorList = []
    for version in versions:
        for j, version_config in enumerate(versions_config):
            if version.version != version_config.version:
                continue
            version_path = fld_path.index(j)
            if not version_config.image:
                errors.append(required(version_path.child("image"), "must provide an image"))
            if version_config.architecture not in VALID_ARCHITECTURES:
                errors.append(
                    not_supported(
                        version_path.child("architecture"), version_config.architecture, VALID_ARCHITECTURES
                    )
                )
            break
        else:
            errors.append(
                required(fld_path, f"must provide an image mapping for version {_q(version.version)}")
            )
    return errors