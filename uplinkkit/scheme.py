"""Erasure schemes and redundancy strategies built on Reed-Solomon codes."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass

from uplinkkit.errors import EestreamError
from uplinkkit.fec import FEC, Share


class ErasureScheme(ABC):
    """The general shape of an erasure coding algorithm."""

    @abstractmethod
    def encode(self, data: bytes) -> dict[int, bytes]:
        """Encode ``data`` into erasure shares keyed by share number."""

    @abstractmethod
    def encode_single(self, stripe: bytes, num: int) -> bytes:
        """Return the erasure share numbered ``num`` for ``stripe``."""

    @abstractmethod
    def decode(self, shares: Mapping[int, bytes]) -> bytes:
        """Combine available erasure shares back into the original data."""

    @property
    @abstractmethod
    def erasure_share_size(self) -> int:
        """Size of each erasure share."""

    @property
    @abstractmethod
    def stripe_size(self) -> int:
        """Size of the stripes that are encoded and decoded."""

    @property
    @abstractmethod
    def total_count(self) -> int:
        """Number of erasure shares produced."""

    @property
    @abstractmethod
    def required_count(self) -> int:
        """Number of erasure shares needed to decode."""


class _FECScheme(ErasureScheme):
    def __init__(self, fec: FEC, erasure_share_size: int) -> None:
        self.fec = fec
        self._erasure_share_size = erasure_share_size

    @property
    def erasure_share_size(self) -> int:
        return self._erasure_share_size

    @property
    def stripe_size(self) -> int:
        return self._erasure_share_size * self.fec.required

    @property
    def total_count(self) -> int:
        return self.fec.total

    @property
    def required_count(self) -> int:
        return self.fec.required


class RSScheme(_FECScheme):
    """Reed-Solomon erasure scheme with error correction."""

    def encode(self, data: bytes) -> dict[int, bytes]:
        return {share.number: share.data for share in self.fec.encode(data)}

    def encode_single(self, stripe: bytes, num: int) -> bytes:
        return self.fec.encode_single(stripe, num)

    def decode(self, shares: Mapping[int, bytes]) -> bytes:
        return self.fec.decode(Share(num, bytes(data)) for num, data in shares.items())


class UnsafeRSScheme(_FECScheme):
    """Reed-Solomon erasure scheme that rebuilds data without error correction."""

    def encode(self, data: bytes) -> dict[int, bytes]:
        return {share.number: share.data for share in self.fec.encode(data)}

    def encode_single(self, stripe: bytes, num: int) -> bytes:
        return self.fec.encode_single(stripe, num)

    def decode(self, shares: Mapping[int, bytes]) -> bytes:
        rebuilt = self.fec.rebuild(Share(num, bytes(data)) for num, data in shares.items())
        stripe = bytearray(self.required_count * self.erasure_share_size)
        for share in rebuilt:
            offset = share.number * self.erasure_share_size
            count = max(min(len(stripe) - offset, len(share.data)), 0)
            stripe[offset:offset + count] = share.data[:count]
        return bytes(stripe)


@dataclass(frozen=True)
class RedundancyScheme:
    """Redundancy settings as stored alongside a segment."""

    required_shares: int
    total_shares: int
    share_size: int
    repair_shares: int = 0
    optimal_shares: int = 0


class RedundancyStrategy(ErasureScheme):
    """An erasure scheme together with its repair and optimal thresholds."""

    def __init__(self, scheme: ErasureScheme, repair_threshold: int = 0, optimal_threshold: int = 0) -> None:
        if repair_threshold == 0:
            repair_threshold = scheme.total_count
        if optimal_threshold == 0:
            optimal_threshold = scheme.total_count
        if repair_threshold < 0:
            raise EestreamError("negative repair threshold")
        if 0 < repair_threshold < scheme.required_count:
            raise EestreamError("repair threshold less than required count")
        if repair_threshold > scheme.total_count:
            raise EestreamError("repair threshold greater than total count")
        if optimal_threshold < 0:
            raise EestreamError("negative optimal threshold")
        if 0 < optimal_threshold < scheme.required_count:
            raise EestreamError("optimal threshold less than required count")
        if optimal_threshold > scheme.total_count:
            raise EestreamError("optimal threshold greater than total count")
        if repair_threshold > optimal_threshold:
            raise EestreamError("repair threshold greater than optimal threshold")
        self.scheme = scheme
        self._repair_threshold = repair_threshold
        self._optimal_threshold = optimal_threshold

    @classmethod
    def from_redundancy_scheme(cls, redundancy: RedundancyScheme) -> RedundancyStrategy:
        """Build a Reed-Solomon strategy from stored redundancy settings."""
        try:
            fec = FEC(redundancy.required_shares, redundancy.total_shares)
        except ValueError as exc:
            raise EestreamError(str(exc)) from exc
        scheme = RSScheme(fec, redundancy.share_size)
        return cls(scheme, redundancy.repair_shares, redundancy.optimal_shares)

    @property
    def repair_threshold(self) -> int:
        """Available pieces below which the data must be repaired."""
        return self._repair_threshold

    @property
    def optimal_threshold(self) -> int:
        """Available pieces above which no repair is needed."""
        return self._optimal_threshold

    def encode(self, data: bytes) -> dict[int, bytes]:
        return self.scheme.encode(data)

    def encode_single(self, stripe: bytes, num: int) -> bytes:
        return self.scheme.encode_single(stripe, num)

    def decode(self, shares: Mapping[int, bytes]) -> bytes:
        return self.scheme.decode(shares)

    @property
    def erasure_share_size(self) -> int:
        return self.scheme.erasure_share_size

    @property
    def stripe_size(self) -> int:
        return self.scheme.stripe_size

    @property
    def total_count(self) -> int:
        return self.scheme.total_count

    @property
    def required_count(self) -> int:
        return self.scheme.required_count


def calc_piece_size(data_size: int, scheme: ErasureScheme) -> int:
    """Return the piece size after erasure coding ``data_size`` bytes with padding."""
    uint32_size = 4
    stripe_size = scheme.stripe_size
    stripes = (data_size + uint32_size + stripe_size - 1) // stripe_size
    encoded_size = stripes * stripe_size
    return encoded_size // scheme.required_count