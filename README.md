# uplinkkit

Building blocks for clients of distributed object storage. Data is split
into Reed-Solomon erasure-coded pieces. It can be rebuilt from any large
enough subset of those pieces, and damaged pieces can be corrected.

The package has no third-party dependencies.

## Modules

- `uplinkkit.fec`: a systematic Reed-Solomon code over GF(2^8). `FEC(required, total)`
  has `encode`, `encode_single`, `decode` and `rebuild`. `decode` corrects errors when it
  has more shares than it needs. `rebuild` does not check for errors. Both work with
  `Share(number, data)` values. They raise `NotEnoughSharesError` and `TooManyErrorsError`.
- `uplinkkit.scheme`: the erasure schemes. `RSScheme` decodes with error correction and
  `UnsafeRSScheme` only rebuilds. `RedundancyStrategy` wraps a scheme together with its
  `repair_threshold` and `optimal_threshold`. A threshold of 0 means the total count.
  `RedundancyStrategy.from_redundancy_scheme` builds a strategy from a `RedundancyScheme`.
  `calc_piece_size` returns the size of one piece once the data has been padded and encoded.
- `uplinkkit.piecebuf`: `PieceBuffer`, a thread-safe ring buffer that holds the erasure
  shares of one piece. Its methods are `read`, `skip`, `write`, `has_share`, `read_share`,
  `set_error` and `close`.
- `uplinkkit.stripe`: `StripeReader`. It copies each piece stream into a `PieceBuffer` on
  its own thread, then decodes stripe after stripe with `read_stripe`. A stripe it cannot
  decode raises an `EestreamError` that lists the error of each failed piece.
- `uplinkkit.encode`: `encode_reader(reader, strategy)` returns one `EncodedPiece` reader
  per share number. `EncodedRanger` encodes a byte range of a `Ranger` and has `output_size`
  and `range`.
- `uplinkkit.decode`: `decode_readers` joins piece readers back into one `DecodedReader`.
  `decode` joins piece rangers into a `DecodedRanger`.
- `uplinkkit.ranger`: the `Ranger` interface, `ByteRanger`, `LimitedReader` and
  `calc_encompassing_blocks`.
- `uplinkkit.etag`: `HashReader` passes each read through a hash object, for example one
  from `hashlib`. `current_etag()` returns the digest of everything read up to that point.
- `uplinkkit.retry`: `with_retry(fn, cancel=None)` calls `fn` again after transient network
  errors, waiting longer each time with `ExponentialBackoff`. It gives up once the delay has
  reached its maximum. `needs_retry` makes the retry decision and never retries an
  `EOFError`. When the `cancel` event is set, the call raises `CancelledError`.
- `uplinkkit.types`: `ListDirection`, `Bucket`, `BucketList`, `BucketListOptions`,
  `ObjectEntry`, `ObjectList` and `ListOptions`. Both option types have `next_page`.
- `uplinkkit.buckets`: the abstract `BucketClient` and `iterate_buckets`. `iterate_buckets`
  dials a new client for every page and yields every bucket after a cursor.
- `uplinkkit.errors`: `EestreamError`. Its message begins with `eestream: `.

## Example

```python
import io

from uplinkkit.fec import FEC
from uplinkkit.scheme import RSScheme, RedundancyStrategy
from uplinkkit.encode import encode_reader
from uplinkkit.decode import decode_readers

data = bytes(range(256)) * 128          # 32 KiB
scheme = RSScheme(FEC(2, 4), 8 * 1024)
strategy = RedundancyStrategy(scheme)

pieces = encode_reader(io.BytesIO(data), strategy)
stored = [io.BytesIO(piece.read()) for piece in pieces]

# Any two of the four pieces are enough.
readers = {1: stored[1], 3: stored[3]}
with decode_readers(readers, strategy, len(data)) as decoder:
    assert decoder.read() == data
```

## What it does not do

- It has no client for a storage network or a metadata service. `BucketClient` is only an
  interface, and you supply the connection that lists buckets.
- It does not encrypt or decrypt anything. It does not encrypt paths or metadata.
- It does not pad data. `calc_piece_size` assumes you pad the data before encoding it.
- It provides no command-line tool.

## Running the tests

```
pip install -e ".[test]"
pytest
```