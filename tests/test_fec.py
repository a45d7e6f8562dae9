import itertools
import random

import pytest

from uplinkkit.fec import FEC, NotEnoughSharesError, Share, TooManyErrorsError


def _data(size, seed=1):
    return random.Random(seed).randbytes(size)


def _flip(data):
    return bytes(b ^ 0xFF for b in data)


def test_single_required_share_replicates_data():
    data = b"abc"
    shares = FEC(1, 3).encode(data)
    assert [share.data for share in shares] == [data, data, data]
    assert [share.number for share in shares] == [0, 1, 2]


def test_encoding_is_systematic():
    data = _data(90)
    fec = FEC(3, 5)
    shares = fec.encode(data)
    assert b"".join(share.data for share in shares[:3]) == data
    assert len({len(share.data) for share in shares}) == 1


def test_any_required_subset_decodes():
    data = _data(60)
    fec = FEC(3, 6)
    shares = fec.encode(data)
    for subset in itertools.combinations(shares, 3):
        assert fec.decode(subset) == data


def test_rebuild_returns_data_shares():
    data = _data(48)
    fec = FEC(3, 6)
    shares = fec.encode(data)
    rebuilt = fec.rebuild([shares[5], shares[1], shares[4]])
    assert [share.number for share in rebuilt] == [0, 1, 2]
    assert b"".join(share.data for share in rebuilt) == data


def test_encode_single_matches_encode():
    data = _data(64)
    fec = FEC(4, 9)
    shares = fec.encode(data)
    for share in shares:
        assert fec.encode_single(data, share.number) == share.data


def test_decode_with_extra_clean_shares():
    data = _data(40)
    fec = FEC(2, 4)
    shares = fec.encode(data)
    assert fec.decode(shares[:3]) == data
    assert fec.decode(shares) == data


def test_decode_corrects_single_error():
    data = _data(64)
    fec = FEC(2, 4)
    shares = fec.encode(data)
    shares[1] = Share(1, _flip(shares[1].data))
    assert fec.decode(shares) == data


def test_decode_corrects_two_errors():
    data = _data(63)
    fec = FEC(3, 7)
    shares = fec.encode(data)
    shares[0] = Share(0, _flip(shares[0].data))
    shares[5] = Share(5, _data(len(shares[5].data), seed=9))
    assert fec.decode(reversed(shares)) == data


def test_detected_error_without_spare_shares_needs_more():
    data = _data(64)
    fec = FEC(2, 4)
    shares = fec.encode(data)
    corrupted = [shares[0], shares[1], Share(2, _flip(shares[2].data))]
    with pytest.raises(NotEnoughSharesError):
        fec.decode(corrupted)


def test_too_many_errors():
    data = _data(64)
    fec = FEC(2, 4)
    shares = fec.encode(data)
    shares[0] = Share(0, _flip(shares[0].data))
    shares[1] = Share(1, _flip(shares[1].data))
    with pytest.raises(TooManyErrorsError):
        fec.decode(shares)


def test_too_few_shares():
    fec = FEC(3, 5)
    shares = fec.encode(_data(30))
    with pytest.raises(NotEnoughSharesError):
        fec.decode(shares[:2])
    with pytest.raises(NotEnoughSharesError):
        fec.rebuild(shares[3:])


def test_duplicate_shares_do_not_count_twice():
    fec = FEC(2, 4)
    shares = fec.encode(_data(20))
    with pytest.raises(NotEnoughSharesError):
        fec.decode([shares[1], shares[1]])


def test_input_must_be_multiple_of_required():
    with pytest.raises(ValueError):
        FEC(3, 5).encode(b"abcd")


@pytest.mark.parametrize("required, total", [(0, 4), (3, 2), (1, 257), (-1, 3)])
def test_invalid_parameters(required, total):
    with pytest.raises(ValueError):
        FEC(required, total)


def test_invalid_share_number():
    fec = FEC(2, 4)
    with pytest.raises(ValueError):
        fec.decode([Share(0, b"ab"), Share(7, b"cd")])
    with pytest.raises(ValueError):
        fec.encode_single(b"abcd", 4)


def test_mismatched_share_lengths():
    with pytest.raises(ValueError):
        FEC(2, 4).decode([Share(0, b"ab"), Share(1, b"abc")])