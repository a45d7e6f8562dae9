import pytest

from uplinkkit.buckets import BucketClient, iterate_buckets
from uplinkkit.types import Bucket, BucketList, BucketListOptions, ListDirection


class FakeClient(BucketClient):
    def __init__(self, server, fail_with=None):
        self.server = server
        self.fail_with = fail_with
        self.closed = False

    def list_buckets(self, options):
        self.server.requests.append(options)
        if self.fail_with is not None:
            raise self.fail_with
        names = [name for name in self.server.names if name > options.cursor]
        page_size = options.limit or len(names)
        page = names[:page_size]
        return BucketList(more=len(names) > len(page), items=tuple(Bucket(n) for n in page))

    def close(self):
        self.closed = True


class FakeServer:
    def __init__(self, names, fail_with=None):
        self.names = sorted(names)
        self.fail_with = fail_with
        self.requests = []
        self.clients = []

    def dial(self):
        client = FakeClient(self, self.fail_with)
        self.clients.append(client)
        return client


def test_iterates_all_buckets_across_pages():
    names = ["alpha", "bravo", "charlie", "delta", "echo"]
    server = FakeServer(names)

    result = [bucket.name for bucket in iterate_buckets(server.dial, limit=2)]

    assert result == names
    assert all(client.closed for client in server.clients)
    assert len(server.clients) == len(server.requests)


def test_pages_continue_after_last_name():
    server = FakeServer(["alpha", "bravo", "charlie"])
    list(iterate_buckets(server.dial, limit=2))
    assert server.requests[0] == BucketListOptions(cursor="", direction=ListDirection.AFTER, limit=2)
    assert server.requests[1].cursor == "bravo"
    assert server.requests[1].direction is ListDirection.AFTER


def test_cursor_skips_earlier_buckets():
    server = FakeServer(["alpha", "bravo", "charlie"])
    result = [bucket.name for bucket in iterate_buckets(server.dial, cursor="alpha")]
    assert result == ["bravo", "charlie"]


def test_no_buckets_yields_nothing():
    server = FakeServer([])
    assert list(iterate_buckets(server.dial)) == []
    assert len(server.requests) == 1


def test_listing_error_is_raised_and_client_closed():
    server = FakeServer(["alpha"], fail_with=ConnectionError("unreachable"))
    with pytest.raises(ConnectionError):
        list(iterate_buckets(server.dial))
    assert server.clients[0].closed is True


def test_dial_error_is_raised():
    def dial():
        raise RuntimeError("cannot dial")

    with pytest.raises(RuntimeError, match="cannot dial"):
        next(iterate_buckets(dial))


def test_iteration_is_lazy():
    server = FakeServer(["alpha", "bravo", "charlie"])
    iterator = iterate_buckets(server.dial, limit=1)
    assert server.requests == []
    assert next(iterator).name == "alpha"
    assert len(server.requests) == 1