"""Tests for connectkit.models — descriptors and paged results."""

import pytest
from pydantic import ValidationError

from connectkit.models import EntityDescriptor, FilterCriterion, HttpMethod, PagedResult


class TestEntityDescriptor:
    def test_required_is_coerced_to_frozenset(self):
        d = EntityDescriptor(name="shadows", endpoint="things/{thing_name}/shadow", required=["thing_name", " "])
        assert d.required == frozenset({"thing_name"})

    def test_descriptor_is_immutable(self):
        d = EntityDescriptor(name="things", endpoint="things")
        with pytest.raises(ValidationError):
            d.endpoint = "other"

    def test_blank_name_is_rejected(self):
        with pytest.raises(ValidationError):
            EntityDescriptor(name="  ", endpoint="things")

    def test_defaults(self):
        d = EntityDescriptor(name="things", endpoint="things")
        assert d.method == HttpMethod.GET
        assert d.root is None


def test_filter_criterion_is_frozen():
    f = FilterCriterion(field_name="channel", value="C1")
    with pytest.raises(ValidationError):
        f.value = "C2"


class TestPagedResultEstimate:
    def test_full_page_without_total_has_next(self):
        page = PagedResult.estimate([{}] * 10, page_number=2, page_size=10)
        assert page.has_next_page is True
        assert page.has_previous_page is True
        assert page.total_records == 20
        assert page.total_pages == 3
        assert page.count == 10

    def test_short_page_is_last(self):
        page = PagedResult.estimate([{}] * 4, page_number=1, page_size=10)
        assert page.has_next_page is False
        assert page.total_pages == 1
        assert page.total_records == 4

    def test_authoritative_total(self):
        page = PagedResult.estimate([{}] * 10, page_number=1, page_size=10, total=95)
        assert page.total_records == 95
        assert page.total_pages == 10
        assert page.has_next_page is True

    def test_page_number_is_at_least_one(self):
        page = PagedResult.estimate([], page_number=0, page_size=10)
        assert page.page_number == 1
        assert page.has_previous_page is False

    def test_count_is_serialized(self):
        page = PagedResult.estimate([{"id": 1}], page_number=1, page_size=5)
        assert page.model_dump()["count"] == 1
