from uplinkkit.types import (
    Bucket,
    BucketList,
    BucketListOptions,
    ListDirection,
    ListOptions,
    ObjectEntry,
    ObjectList,
)


def test_list_options_next_page():
    opts = ListOptions(
        prefix="alpha/",
        cursor="a",
        delimiter="/",
        recursive=True,
        direction=ListDirection.AFTER,
        limit=30,
    )
    object_list = ObjectList(
        bucket="hello",
        prefix="alpha/",
        more=True,
        items=(ObjectEntry(path="alpha/xyz"),),
    )

    assert opts.next_page(object_list) == ListOptions(
        prefix="alpha/",
        cursor="alpha/xyz",
        delimiter="/",
        recursive=True,
        direction=ListDirection.AFTER,
        limit=30,
    )


def test_list_options_next_page_without_more_is_default():
    opts = ListOptions(prefix="alpha/", cursor="a", limit=30)
    object_list = ObjectList(more=False, items=(ObjectEntry(path="alpha/xyz"),))
    assert opts.next_page(object_list) == ListOptions()


def test_list_options_next_page_with_no_items_is_default():
    opts = ListOptions(prefix="alpha/", limit=30)
    assert opts.next_page(ObjectList(more=True)) == ListOptions()


def test_list_options_next_page_drops_status():
    opts = ListOptions(status=2, include_custom_metadata=True)
    result = opts.next_page(ObjectList(more=True, items=(ObjectEntry(path="k"),)))
    assert result.status == 0
    assert result.include_custom_metadata is True


def test_bucket_list_options_next_page():
    opts = BucketListOptions(cursor="a", direction=ListDirection.FORWARD, limit=10)
    bucket_list = BucketList(more=True, items=(Bucket("b1"), Bucket("b2")))
    assert opts.next_page(bucket_list) == BucketListOptions(
        cursor="b2", direction=ListDirection.AFTER, limit=10
    )


def test_bucket_list_options_next_page_at_end_is_default():
    opts = BucketListOptions(cursor="a", limit=10)
    assert opts.next_page(BucketList(more=False, items=(Bucket("b1"),))) == BucketListOptions()


def test_list_direction_values():
    assert ListDirection.FORWARD == 0
    assert ListDirection.AFTER == 1
    assert ListOptions().direction is ListDirection.FORWARD