"""CIDR ranges tied to the field they were configured in."""

from __future__ import annotations

import ipaddress
import json
from ipaddress import IPv4Address, IPv4Network, IPv6Address, IPv6Network

from gcpprovider.field import ErrorList, Path, invalid


def _q(value: object) -> str:
    return json.dumps(str(value), ensure_ascii=False)


def _path_text(path: Path | None) -> str:
    return "" if path is None else str(path)


def _parse_cidr(text: str) -> tuple[IPv4Address | IPv6Address, IPv4Network | IPv6Network]:
    """Parse ``address/prefix`` and return the address and its masked network."""
    error = ValueError(f"invalid CIDR address: {text}")
    address, sep, prefix = text.partition("/")
    if not sep or not prefix or not prefix.isascii() or not prefix.isdigit() or "%" in address:
        raise error
    try:
        ip = ipaddress.ip_address(address)
    except ValueError:
        raise error from None
    length = int(prefix)
    if length > ip.max_prefixlen:
        raise error
    return ip, ipaddress.ip_network((ip, length), strict=False)


class CIDR:
    """A CIDR string together with the path of the field that holds it.

    Parsing happens on construction; an unparsable value keeps its error in
    ``parse_error`` and is skipped by the comparison checks.
    """

    def __init__(self, cidr: str, path: Path | None = None) -> None:
        self.cidr = cidr
        self.path = path
        self.address: IPv4Address | IPv6Address | None
        self.network: IPv4Network | IPv6Network | None
        self.parse_error: str | None
        try:
            self.address, self.network = _parse_cidr(cidr)
            self.parse_error = None
        except ValueError as exc:
            self.address = None
            self.network = None
            self.parse_error = str(exc)

    def __repr__(self) -> str:
        return f"CIDR({self.cidr!r}, {_path_text(self.path)!r})"

    def _comparable(self, other: CIDR | None) -> bool:
        return (
            other is not None
            and other is not self
            and other.network is not None
            and self.network is not None
            and other.network.version == self.network.version
        )

    def validate_parse(self) -> ErrorList:
        """Report an error if the CIDR could not be parsed."""
        if self.parse_error is None:
            return []
        return [invalid(self.path, self.cidr, self.parse_error)]

    def validate_not_overlap(self, *others: CIDR | None) -> ErrorList:
        """Report an error for each given CIDR that overlaps with this one."""
        if self.network is None:
            return []
        errors: ErrorList = []
        for other in others:
            if not self._comparable(other):
                continue
            assert other is not None and other.network is not None
            if (
                other.network.network_address in self.network
                or self.network.network_address in other.network
            ):
                errors.append(
                    invalid(
                        other.path,
                        other.cidr,
                        f"must not overlap with {_q(_path_text(self.path))} ({_q(self.cidr)})",
                    )
                )
        return errors

    def validate_subset(self, *subsets: CIDR | None) -> ErrorList:
        """Report an error for each given CIDR that is not contained in this one."""
        if self.network is None:
            return []
        errors: ErrorList = []
        for subset in subsets:
            if not self._comparable(subset):
                continue
            assert subset is not None and subset.network is not None
            if (
                subset.network.network_address not in self.network
                or subset.network.broadcast_address not in self.network
            ):
                errors.append(
                    invalid(
                        subset.path,
                        subset.cidr,
                        f"must be a subset of {_q(_path_text(self.path))} ({_q(self.cidr)})",
                    )
                )
        return errors


def validate_cidr_is_canonical(path: Path | None, cidr: str) -> ErrorList:
    """Report an error if the address of the CIDR has host bits set.

    Empty and unparsable values are left to other checks.
    """
    if not cidr:
        return []
    try:
        address, network = _parse_cidr(cidr)
    except ValueError:
        return []
    if address != network.network_address:
        return [invalid(path, cidr, "must be valid canonical CIDR")]
    return []