"""Lookups, error classification and provider config decoding for GCP types."""

from __future__ import annotations

import dataclasses
import re
from collections.abc import Callable, Iterable
from enum import Enum

from gcpprovider import api, v1alpha1


class ErrorCode(str, Enum):
    """Classification codes for infrastructure errors."""

    INFRA_UNAUTHENTICATED = "ERR_INFRA_UNAUTHENTICATED"
    INFRA_UNAUTHORIZED = "ERR_INFRA_UNAUTHORIZED"
    INFRA_QUOTA_EXCEEDED = "ERR_INFRA_QUOTA_EXCEEDED"
    INFRA_RATE_LIMITS_EXCEEDED = "ERR_INFRA_RATE_LIMITS_EXCEEDED"
    INFRA_DEPENDENCIES = "ERR_INFRA_DEPENDENCIES"
    RETRYABLE_INFRA_DEPENDENCIES = "ERR_RETRYABLE_INFRA_DEPENDENCIES"
    INFRA_RESOURCES_DEPLETED = "ERR_INFRA_RESOURCES_DEPLETED"
    CONFIGURATION_PROBLEM = "ERR_CONFIGURATION_PROBLEM"
    RETRYABLE_CONFIGURATION_PROBLEM = "ERR_RETRYABLE_CONFIGURATION_PROBLEM"

    def __str__(self) -> str:
        return self.value


def _pattern(expression: str) -> re.Pattern[str]:
    return re.compile(expression, re.IGNORECASE)


_UNAUTHENTICATED = _pattern(
    r"(Authentication failed|invalid character|invalid_client|cannot fetch token|InvalidSecretAccessKey)"
)
_UNAUTHORIZED = _pattern(
    r"(Unauthorized|SignatureDoesNotMatch|invalid_grant|Authorization Profile was not found"
    r"|no active subscriptions|not authorized|AccessDenied|Error 403|SERVICE_ACCOUNT_ACCESS_DENIED)"
)
_QUOTA_EXCEEDED = _pattern(
    r"((?:^|[^t]|(?:[^s]|^)t|(?:[^e]|^)st|(?:[^u]|^)est|(?:[^q]|^)uest|(?:[^e]|^)quest|(?:[^r]|^)equest)"
    r"LimitExceeded|Quotas|Quota.*exceeded|exceeded quota|Quota has been met|QUOTA_EXCEEDED"
    r"|ZONE_RESOURCE_POOL_EXHAUSTED_WITH_DETAILS)"
)
_RATE_LIMITS_EXCEEDED = _pattern(r"(RequestLimitExceeded|Throttling|Too many requests)")
_DEPENDENCIES = _pattern(
    r"(PendingVerification|Access Not Configured|accessNotConfigured|DependencyViolation|OptInRequired"
    r"|Conflict|inactive billing state|is already being used|timeout while waiting for state to become"
    r"|InvalidCidrBlock|already busy for|internalerror|internal server error|A resource with the ID)"
)
_RETRYABLE_DEPENDENCIES = _pattern(r"(RetryableError)")
_RESOURCES_DEPLETED = _pattern(r"(not available in the current hardware cluster|out of stock)")
_CONFIGURATION_PROBLEM = _pattern(
    r"(not supported in your requested Availability Zone|notFound|Invalid value|violates constraint"
    r"|no attached internet gateway found|invalid VPC attributes|unrecognized feature gate"
    r"|runtime-config invalid key|strict decoder error|not allowed to configure an unsupported"
    r"|error during apply of object .* is invalid:|duplicate zones|overlapping zones)"
)
_RETRYABLE_CONFIGURATION_PROBLEM = _pattern(
    r"(is misconfigured and requires zero voluntary evictions|SDK.CanNotResolveEndpoint"
    r"|The requested configuration is currently not supported)"
)

KNOWN_CODES: dict[ErrorCode, Callable[[str], bool]] = {
    ErrorCode.INFRA_UNAUTHENTICATED: lambda s: _UNAUTHENTICATED.search(s) is not None,
    ErrorCode.INFRA_UNAUTHORIZED: lambda s: _UNAUTHORIZED.search(s) is not None,
    ErrorCode.INFRA_QUOTA_EXCEEDED: lambda s: _QUOTA_EXCEEDED.search(s) is not None,
    ErrorCode.INFRA_RATE_LIMITS_EXCEEDED: lambda s: _RATE_LIMITS_EXCEEDED.search(s) is not None,
    ErrorCode.INFRA_DEPENDENCIES: lambda s: _DEPENDENCIES.search(s) is not None,
    ErrorCode.RETRYABLE_INFRA_DEPENDENCIES: lambda s: _RETRYABLE_DEPENDENCIES.search(s) is not None,
    ErrorCode.INFRA_RESOURCES_DEPLETED: lambda s: _RESOURCES_DEPLETED.search(s) is not None,
    ErrorCode.CONFIGURATION_PROBLEM: lambda s: _CONFIGURATION_PROBLEM.search(s) is not None,
    ErrorCode.RETRYABLE_CONFIGURATION_PROBLEM: lambda s: _RETRYABLE_CONFIGURATION_PROBLEM.search(s)
    is not None,
}
"""Maps each error code to a predicate that recognises messages of that kind."""


def determine_error_codes(message: str) -> list[ErrorCode]:
    """Return every known error code whose pattern matches the message."""
    return [code for code, matches in KNOWN_CODES.items() if matches(message)]


def _q(value: object) -> str:
    return f'"{value}"'


def find_subnet_by_purpose(subnets: Iterable[api.Subnet] | None, purpose: api.SubnetPurpose | str) -> api.Subnet:
    """Return the first subnet with the given purpose.

    Raises LookupError when there is none.
    """
    for subnet in subnets or ():
        if subnet.purpose == purpose:
            return subnet
    raise LookupError(f"cannot find subnet with purpose {_q(purpose)}")


def find_machine_image(
    machine_images: Iterable[api.MachineImage] | None,
    name: str,
    version: str,
    architecture: str | None,
) -> api.MachineImage:
    """Return the machine image matching name, version and architecture.

    Images without an architecture count as amd64. The returned image is a
    copy carrying the effective architecture. Raises LookupError when there
    is no match.
    """
    for machine_image in machine_images or ():
        candidate = machine_image
        if candidate.architecture is None:
            candidate = dataclasses.replace(candidate, architecture=v1alpha1.ARCHITECTURE_AMD64)
        if (
            candidate.name == name
            and candidate.version == version
            and candidate.architecture == architecture
        ):
            return dataclasses.replace(candidate)
    raise LookupError(
        f"no machine image found with name {_q(name)}, architecture {_q(architecture)} "
        f"and version {_q(version)}"
    )


def find_image_from_cloud_profile(
    cloud_profile_config: api.CloudProfileConfig | None,
    image_name: str,
    image_version: str,
    architecture: str | None,
) -> str:
    """Return the image path for the given name, version and architecture.

    Raises LookupError when the cloud profile has no such image.
    """
    if cloud_profile_config is not None:
        for machine_image in cloud_profile_config.machine_images or ():
            if machine_image.name != image_name:
                continue
            for version in machine_image.versions or ():
                if version.version == image_version and version.architecture == architecture:
                    return version.image
    raise LookupError(
        f"could not find an image for name {_q(image_name)} and architecture {_q(architecture)} "
        f"in version {_q(image_version)}"
    )


def _decode_as(raw: bytes | str, cls: type, strict: bool) -> object:
    obj = v1alpha1.decode(raw, strict=strict)
    if not isinstance(obj, cls):
        raise v1alpha1.DecodeError(f"expected an object of kind {cls.__name__}, got {type(obj).__name__}")
    return obj


def infrastructure_config_from_raw(raw: bytes | str | None) -> api.InfrastructureConfig:
    """Strictly decode the provider config of an Infrastructure resource.

    Raises ValueError when no config is given and DecodeError when it is malformed.
    """
    if raw is None:
        raise ValueError("provider config is not set on the infrastructure resource")
    return _decode_as(raw, api.InfrastructureConfig, strict=True)  # type: ignore[return-value]


def infrastructure_status_from_raw(raw: bytes | str | None) -> api.InfrastructureStatus:
    """Leniently decode the provider status of an Infrastructure resource.

    Raises ValueError when no status is given and DecodeError when it is malformed.
    """
    if raw is None:
        raise ValueError("provider status is not set on the infrastructure resource")
    return _decode_as(raw, api.InfrastructureStatus, strict=False)  # type: ignore[return-value]


def cloud_profile_config_from_raw(
    raw: bytes | str | None, cloud_profile_name: str
) -> api.CloudProfileConfig | None:
    """Strictly decode the provider config of a CloudProfile, or return None if unset."""
    if raw is None:
        return None
    try:
        return _decode_as(raw, api.CloudProfileConfig, strict=True)  # type: ignore[return-value]
    except v1alpha1.DecodeError as exc:
        raise v1alpha1.DecodeError(
            f"could not decode providerConfig of cloudProfile for '{cloud_profile_name}': {exc}"
        ) from exc