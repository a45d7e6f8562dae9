"""Systematic Reed-Solomon forward error correction over GF(2^8)."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from operator import attrgetter

_PRIMITIVE = 0x11D


def _build_tables() -> tuple[list[int], list[int]]:
    exp = [0] * 510
    log = [0] * 256
    value = 1
    for power in range(255):
        exp[power] = value
        log[value] = power
        value <<= 1
        if value & 0x100:
            value ^= _PRIMITIVE
    for power in range(255, 510):
        exp[power] = exp[power - 255]
    return exp, log


_EXP, _LOG = _build_tables()


def _mul(a: int, b: int) -> int:
    if a == 0 or b == 0:
        return 0
    return _EXP[_LOG[a] + _LOG[b]]


def _inv(a: int) -> int:
    if a == 0:
        raise ZeroDivisionError("zero has no inverse in GF(256)")
    return _EXP[255 - _LOG[a]]


def _div(a: int, b: int) -> int:
    return _mul(a, _inv(b))


_MUL_TABLES = tuple(bytes(_mul(c, x) for x in range(256)) for c in range(256))


def _linear_combination(coefficients: Iterable[int], rows: Iterable[bytes], length: int) -> bytes:
    acc = 0
    for coefficient, row in zip(coefficients, rows):
        if coefficient:
            acc ^= int.from_bytes(row.translate(_MUL_TABLES[coefficient]), "big")
    return acc.to_bytes(length, "big")


def _invert(matrix: Sequence[Sequence[int]]) -> list[list[int]]:
    size = len(matrix)
    work = [list(row) + [int(i == j) for j in range(size)] for i, row in enumerate(matrix)]
    for col in range(size):
        pivot = next((r for r in range(col, size) if work[r][col]), None)
        if pivot is None:
            raise ValueError("singular matrix")
        work[col], work[pivot] = work[pivot], work[col]
        scale = _inv(work[col][col])
        work[col] = [_mul(scale, v) for v in work[col]]
        for r in range(size):
            factor = work[r][col]
            if r != col and factor:
                work[r] = [v ^ _mul(factor, p) for v, p in zip(work[r], work[col])]
    return [row[size:] for row in work]


def _poly_eval(poly: Sequence[int], x: int) -> int:
    acc = 0
    for coefficient in reversed(poly):
        acc = _mul(acc, x) ^ coefficient
    return acc


def _poly_divmod(numerator: Sequence[int], divisor: Sequence[int]) -> tuple[list[int], list[int]]:
    remainder = list(numerator)
    degree = len(divisor) - 1
    lead_inv = _inv(divisor[-1])
    quotient = [0] * max(len(numerator) - degree, 1)
    for shift in range(len(numerator) - 1 - degree, -1, -1):
        coefficient = _mul(remainder[shift + degree], lead_inv)
        quotient[shift] = coefficient
        if coefficient:
            for offset, d in enumerate(divisor):
                remainder[shift + offset] ^= _mul(coefficient, d)
    return quotient, remainder[:degree]


@dataclass(frozen=True)
class Share:
    """One erasure share: its number and its bytes."""

    number: int
    data: bytes


class NotEnoughSharesError(Exception):
    """Raised when too few shares are available to decode or correct."""


class TooManyErrorsError(Exception):
    """Raised when the shares hold more errors than can be corrected."""


def _solve(rows: list[list[int]], unknowns: int) -> list[int]:
    """Solve a linear system given as augmented rows, free variables set to zero."""
    work = [list(row) for row in rows]
    pivots: list[int] = []
    rank = 0
    for col in range(unknowns):
        pivot = next((r for r in range(rank, len(work)) if work[r][col]), None)
        if pivot is None:
            continue
        work[rank], work[pivot] = work[pivot], work[rank]
        scale = _inv(work[rank][col])
        work[rank] = [_mul(scale, v) for v in work[rank]]
        for r, row in enumerate(work):
            factor = row[col]
            if r != rank and factor:
                work[r] = [v ^ _mul(factor, p) for v, p in zip(row, work[rank])]
        pivots.append(col)
        rank += 1
    if any(row[unknowns] for row in work[rank:]):
        raise TooManyErrorsError("too many errors to reconstruct")
    solution = [0] * unknowns
    for row, col in zip(work, pivots):
        solution[col] = row[unknowns]
    return solution


class FEC:
    """A systematic Reed-Solomon code producing ``total`` shares of which any ``required`` suffice."""

    def __init__(self, required: int, total: int) -> None:
        if required <= 0 or total <= 0 or required > 256 or total > 256 or required > total:
            raise ValueError("requires 1 <= k <= n <= 256")
        self._required = required
        self._total = total
        self._denominators = []
        for i in range(required):
            denominator = 1
            for m in range(required):
                if m != i:
                    denominator = _mul(denominator, i ^ m)
            self._denominators.append(denominator)
        self._rows: dict[int, tuple[int, ...]] = {}

    @property
    def required(self) -> int:
        return self._required

    @property
    def total(self) -> int:
        return self._total

    def _row(self, number: int) -> tuple[int, ...]:
        row = self._rows.get(number)
        if row is None:
            k = self._required
            if number < k:
                row = tuple(int(i == number) for i in range(k))
            else:
                full = 1
                for m in range(k):
                    full = _mul(full, number ^ m)
                row = tuple(
                    _div(full, _mul(number ^ i, denominator))
                    for i, denominator in enumerate(self._denominators)
                )
            self._rows[number] = row
        return row

    def _split(self, data: bytes) -> tuple[list[bytes], int]:
        data = bytes(data)
        if len(data) % self._required:
            raise ValueError("input length must be a multiple of the required share count")
        size = len(data) // self._required
        return [data[i * size:(i + 1) * size] for i in range(self._required)], size

    def _encode_row(self, number: int, chunks: list[bytes], size: int) -> bytes:
        if number < self._required:
            return chunks[number]
        return _linear_combination(self._row(number), chunks, size)

    def encode(self, data: bytes) -> list[Share]:
        """Encode ``data`` into all ``total`` shares."""
        chunks, size = self._split(data)
        return [Share(number, self._encode_row(number, chunks, size)) for number in range(self._total)]

    def encode_single(self, data: bytes, num: int) -> bytes:
        """Encode ``data`` and return only the share numbered ``num``."""
        if not 0 <= num < self._total:
            raise ValueError(f"invalid share number {num}")
        chunks, size = self._split(data)
        return self._encode_row(num, chunks, size)

    def _prepare(self, shares: Iterable[Share]) -> list[Share]:
        unique: dict[int, Share] = {}
        for share in shares:
            if not 0 <= share.number < self._total:
                raise ValueError(f"invalid share number {share.number}")
            unique.setdefault(share.number, Share(share.number, bytes(share.data)))
        ordered = sorted(unique.values(), key=attrgetter("number"))
        if len({len(share.data) for share in ordered}) > 1:
            raise ValueError("shares must all have the same length")
        return ordered

    def rebuild(self, shares: Iterable[Share]) -> list[Share]:
        """Recover the ``required`` data shares from any ``required`` shares, without error checks."""
        ordered = self._prepare(shares)
        k = self._required
        if len(ordered) < k:
            raise NotEnoughSharesError("not enough shares")
        basis = ordered[:k]
        if [share.number for share in basis] == list(range(k)):
            return basis
        size = len(basis[0].data)
        inverse = _invert([self._row(share.number) for share in basis])
        datas = [share.data for share in basis]
        return [Share(i, _linear_combination(row, datas, size)) for i, row in enumerate(inverse)]

    def decode(self, shares: Iterable[Share]) -> bytes:
        """Correct errors in ``shares`` where possible and return the original data."""
        ordered = self._prepare(shares)
        if len(ordered) < self._required:
            raise NotEnoughSharesError("not enough shares")
        corrected = self._correct(ordered)
        return b"".join(share.data for share in self.rebuild(corrected))

    def _correct(self, shares: list[Share]) -> list[Share]:
        k = self._required
        if len(shares) == k:
            return shares
        size = len(shares[0].data)
        chunks = [share.data for share in self.rebuild(shares[:k])]
        mask = 0
        for extra in shares[k:]:
            expected = self._encode_row(extra.number, chunks, size)
            mask |= int.from_bytes(expected, "big") ^ int.from_bytes(extra.data, "big")
        if not mask:
            return shares
        bad_positions = [pos for pos, value in enumerate(mask.to_bytes(size, "big")) if value]
        xs = [share.number for share in shares]
        columns = [bytearray(share.data) for share in shares]
        for pos in bad_positions:
            poly = self._berlekamp_welch(xs, [column[pos] for column in columns])
            for column, x in zip(columns, xs):
                column[pos] = _poly_eval(poly, x)
        return [Share(x, bytes(column)) for x, column in zip(xs, columns)]

    def _berlekamp_welch(self, xs: list[int], ys: list[int]) -> list[int]:
        k = self._required
        errors = (len(xs) - k) // 2
        if errors <= 0:
            raise NotEnoughSharesError("not enough shares to correct errors")
        q_size = errors + k
        rows = []
        for x, y in zip(xs, ys):
            powers = [1]
            for _ in range(q_size):
                powers.append(_mul(powers[-1], x))
            rows.append(
                powers[:q_size]
                + [_mul(y, p) for p in powers[:errors]]
                + [_mul(y, powers[errors])]
            )
        solution = _solve(rows, q_size + errors)
        q_poly = solution[:q_size]
        e_poly = solution[q_size:] + [1]
        poly, remainder = _poly_divmod(q_poly, e_poly)
        if any(remainder):
            raise TooManyErrorsError("too many errors to reconstruct")
        agreeing = sum(_poly_eval(poly, x) == y for x, y in zip(xs, ys))
        if agreeing < len(xs) - errors:
            raise TooManyErrorsError("too many errors to reconstruct")
        return poly