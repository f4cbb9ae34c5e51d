# tests/test_query_options.py

import uuid

import pytest

from sentiment_dashboard.schemas.query_options import (CommentersQueryOptions, OrderDirection, PageOrderField,
                                                       PageQueryOptions, PostOrderField, PostQueryOptions,
                                                       SentimentQueryOptions, UserQueryOptions)


class TestForgivingParsing:

    def test_defaults(self):
        options = PostQueryOptions.model_validate({})
        assert options.limit == 100
        assert options.offset == 0
        assert options.order_by == PostOrderField.CREATED_AT
        assert options.order_direction == OrderDirection.DESC
        assert options.include_page is True
        assert options.include_comments is False

    @pytest.mark.parametrize("raw", [
        {"limit": "-5"},
        {"limit": "abc"},
        {"limit": "   "},
        {"limit": ""},
    ])
    def test_unusable_limit_keeps_default(self, raw):
        assert PostQueryOptions.model_validate(raw).limit == 100

    def test_negative_offset_keeps_default(self):
        assert PostQueryOptions.model_validate({"offset": "-1"}).offset == 0

    def test_unknown_order_field_keeps_default(self):
        options = PostQueryOptions.model_validate({"order_by": "password; DROP TABLE posts"})
        assert options.order_by == PostOrderField.CREATED_AT

    def test_order_values_are_case_insensitive(self):
        options = PostQueryOptions.model_validate({"order_by": "Engagement_Score", "order_direction": "asc"})
        assert options.order_by == PostOrderField.ENGAGEMENT_SCORE
        assert options.order_direction == OrderDirection.ASC
        assert options.descending is False

    def test_bad_uuid_is_dropped(self):
        assert PostQueryOptions.model_validate({"page_id": "not-a-uuid"}).page_id is None
        page_id = uuid.uuid4()
        assert PostQueryOptions.model_validate({"page_id": str(page_id)}).page_id == page_id

    def test_blank_strings_are_dropped(self):
        options = PostQueryOptions.model_validate({"search": "  ", "sentiment": "", "page_name": " Alpha "})
        assert options.search is None
        assert options.sentiment is None
        assert options.page_name == "Alpha"

    @pytest.mark.parametrize("raw, expected", [
        ("true", True), ("1", True), ("YES", True), ("on", True),
        ("false", False), ("0", False), ("no", False),
    ])
    def test_boolean_strings(self, raw, expected):
        assert PostQueryOptions.model_validate({"include_comments": raw}).include_comments is expected

    def test_unparseable_boolean_keeps_default(self):
        assert PostQueryOptions.model_validate({"include_page": "maybe"}).include_page is True

    def test_unknown_keys_are_ignored(self):
        options = SentimentQueryOptions.model_validate({"min_confidence": "0.5", "foo": "bar"})
        assert options.min_confidence == 0.5
        assert not hasattr(options, "foo")

    def test_bad_float_is_dropped(self):
        assert SentimentQueryOptions.model_validate({"min_confidence": "high"}).min_confidence is None


class TestPerEntityDefaults:

    def test_users_page_size(self):
        assert UserQueryOptions.model_validate({}).limit == 18
        assert UserQueryOptions.model_validate({"limit": "500"}).limit == 100
        assert UserQueryOptions.model_validate({"limit": "25"}).limit == 25

    def test_other_entities_are_unbounded(self):
        assert PostQueryOptions.model_validate({"limit": "500"}).limit == 500

    def test_pages_sort_by_name_ascending(self):
        options = PageQueryOptions.model_validate({})
        assert options.order_by == PageOrderField.NAME
        assert options.order_direction == OrderDirection.ASC

    def test_commenters_sort_by_comment_count(self):
        assert CommentersQueryOptions.model_validate({}).order_by.value == "comment_count"
