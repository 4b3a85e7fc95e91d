"""Tests for mapping API JSON onto Post and Pool records."""

import json
from datetime import datetime, timezone

import pytest

from conftest import pool_page, post_json
from get621.errors import MappingError
from get621.mapper import map_pool, map_post, parse_children, parse_rating, parse_status, parse_tags
from get621.models import PostRating, PostStatus, TypedTags, UntypedTags


# --- Status and rating ---


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("active", PostStatus.ACTIVE),
        ("flagged", PostStatus.FLAGGED),
        ("pending", PostStatus.PENDING),
        ("deleted", PostStatus.DELETED),
        ("banned", PostStatus.DELETED),
        ("Active", PostStatus.DELETED),
    ],
)
def test_status_classification(raw, expected):
    assert map_post(post_json(status=raw)).status is expected


def test_missing_status_is_deleted():
    data = post_json()
    del data["status"]
    assert map_post(data).status is PostStatus.DELETED
    assert parse_status(None) is PostStatus.DELETED


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("s", PostRating.SAFE),
        ("safe", PostRating.SAFE),
        ("q", PostRating.QUESTIONABLE),
        ("questionable", PostRating.QUESTIONABLE),
        ("e", PostRating.EXPLICIT),
        ("x", PostRating.EXPLICIT),
        ("", PostRating.EXPLICIT),
    ],
)
def test_rating_by_first_character(raw, expected):
    assert parse_rating(raw) is expected


def test_rating_must_be_string():
    with pytest.raises(MappingError):
        map_post(post_json(rating=None))


# --- Scalars ---


def test_integers_round_trip_exactly():
    post = map_post(post_json(post_id=2**53 + 1, score=-17, fav_count=123456))
    assert post.id == 2**53 + 1
    assert post.score == -17
    assert post.fav_count == 123456


def test_id_must_be_integer():
    with pytest.raises(MappingError) as exc:
        map_post(post_json(post_id="12"))
    assert exc.value.field == "id"


def test_boolean_is_not_an_integer():
    with pytest.raises(MappingError):
        map_post(post_json(score=True))


def test_missing_required_field():
    data = post_json()
    del data["author"]
    with pytest.raises(MappingError) as exc:
        map_post(data)
    assert "author" in str(exc.value)


def test_non_object_post():
    with pytest.raises(MappingError):
        map_post([1, 2, 3])


def test_created_at_with_nanoseconds():
    post = map_post(post_json(created_at={"s": 1528200000, "n": 500000000}))
    assert post.created_at == datetime(2018, 6, 5, 12, 0, 0, 500000, tzinfo=timezone.utc)


def test_created_at_requires_seconds():
    with pytest.raises(MappingError) as exc:
        map_post(post_json(created_at={"n": 0}))
    assert exc.value.field == "created_at.s"


# --- Tags ---


def test_typed_tags():
    post = map_post(post_json())
    assert post.typed_tags
    assert isinstance(post.tags, TypedTags)
    assert post.tags.general == ("solo", "smile")
    assert post.tags.species == ("fox",)
    assert post.all_tags == ["solo", "smile", "someartist", "fox"]


def test_typed_tags_missing_category_is_empty():
    post = map_post(post_json(tags={"general": ["a"], "lore": ["ignored"]}))
    assert post.tags == TypedTags(general=("a",))


def test_typed_tags_bad_category():
    with pytest.raises(MappingError):
        map_post(post_json(tags={"general": "a b"}))


def test_untyped_tags():
    post = map_post(post_json(tags="fox solo smile"))
    assert not post.typed_tags
    assert post.tags == UntypedTags(tags=("fox", "solo", "smile"))


def test_untyped_tags_drop_empty_tokens():
    assert parse_tags("fox  solo   smile ") == UntypedTags(tags=("fox", "solo", "smile"))
    assert parse_tags("") == UntypedTags(tags=())


def test_tags_of_wrong_type():
    with pytest.raises(MappingError):
        map_post(post_json(tags=12))


# --- Relationships ---


def test_children_list():
    assert parse_children("12,45,9") == (12, 45, 9)
    assert map_post(post_json(children="12,45,9")).children == (12, 45, 9)


def test_children_empty():
    assert parse_children("") == ()
    assert map_post(post_json(children="")).children == ()


def test_children_non_numeric_segment():
    for bad in ["12,abc,9", "12,,9", "1_2,3", "12, 3", "+12,3", "-12", "12,²"]:
        with pytest.raises(MappingError):
            parse_children(bad)
    with pytest.raises(MappingError):
        map_post(post_json(children="12,,9"))


def test_parent_id_null_is_absent():
    assert map_post(post_json(parent_id=None)).parent_id is None
    data = post_json()
    del data["parent_id"]
    assert map_post(data).parent_id is None


def test_parent_id_number():
    assert map_post(post_json(parent_id=555)).parent_id == 555


def test_parent_id_wrong_type():
    with pytest.raises(MappingError):
        map_post(post_json(parent_id="555"))


# --- Misc fields ---


def test_sources_absent_or_not_array():
    assert map_post(post_json(sources=None)).sources == ()
    assert map_post(post_json(sources="https://x")).sources == ()
    data = post_json()
    del data["sources"]
    assert map_post(data).sources == ()


def test_sources_entries_must_be_strings():
    with pytest.raises(MappingError) as exc:
        map_post(post_json(sources=["https://x", 3]))
    assert exc.value.field == "sources"


def test_delreason():
    assert map_post(post_json(delreason=None)).del_reason == ""
    post = map_post(post_json(status="deleted", delreason="duplicate of #4"))
    assert post.is_deleted
    assert post.del_reason == "duplicate of #4"


def test_deleted_post_without_media():
    data = post_json(status="deleted")
    for key in ("file_url", "md5", "file_ext", "file_size", "sample_url", "preview_url"):
        del data[key]
    post = map_post(data)
    assert post.file_url is None
    assert post.md5 is None
    assert not post.downloadable


def test_media_field_wrong_type():
    with pytest.raises(MappingError):
        map_post(post_json(width="800"))


def test_raw_keeps_the_payload():
    data = post_json(description="café")
    post = map_post(data)
    assert json.loads(post.raw) == data
    assert "café" in post.raw


def test_posts_are_immutable():
    post = map_post(post_json())
    with pytest.raises(AttributeError):
        post.id = 2


# --- Pool ---


def test_map_pool():
    posts = [post_json(1), post_json(2)]
    pool = map_pool(7, pool_page(posts[:1], post_count=2), posts)
    assert pool.id == 7
    assert pool.name == "A_Test_Pool"
    assert pool.display_name == "A Test Pool"
    assert [p.id for p in pool.posts] == [1, 2]
    assert pool.is_complete
    assert pool.updated_at == datetime(2018, 6, 26, 8, 0, tzinfo=timezone.utc)
    assert [p["id"] for p in json.loads(pool.raw)["posts"]] == [1, 2]


def test_map_pool_missing_metadata():
    page = pool_page([])
    del page["user_id"]
    with pytest.raises(MappingError):
        map_pool(7, page, [])
