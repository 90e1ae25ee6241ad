import uuid

import pytest

from subscription_tracker.errors import ValidationError
from subscription_tracker.query import (
    DEFAULT_LIMIT,
    MAX_PAGE,
    PageRequest,
    Pagination,
    SubscriptionFilter,
    resolve_filter,
    resolve_page,
)


def test_resolve_page_defaults():
    page_request = resolve_page()
    assert page_request == PageRequest(page=1, limit=DEFAULT_LIMIT)
    assert page_request.offset == 0


def test_resolve_page_computes_offset():
    page_request = resolve_page("3", "20")
    assert (page_request.page, page_request.limit, page_request.offset) == (3, 20, 40)


@pytest.mark.parametrize("raw_page", ["0", "-2", "abc", "", "1.5", "1_0", "５", "99999999999999999999"])
def test_bad_page_falls_back_to_default(raw_page):
    assert resolve_page(raw_page, "5").page == 1


@pytest.mark.parametrize("raw_limit", ["0", "101", "-1", "ten", "", "1_0", "５"])
def test_bad_limit_falls_back_to_default(raw_limit):
    assert resolve_page("2", raw_limit).limit == 10


def test_limit_bounds_are_inclusive():
    assert resolve_page(None, "1").limit == 1
    assert resolve_page(None, "100").limit == 100


def test_page_upper_bound_is_inclusive():
    assert resolve_page(str(MAX_PAGE), "100").page == MAX_PAGE
    assert resolve_page(str(MAX_PAGE + 1), "100").page == 1
    assert resolve_page("+3", None).page == 3


@pytest.mark.parametrize("total,limit,expected_pages", [(0, 10, 0), (1, 10, 1), (10, 10, 1), (11, 10, 2), (250, 100, 3)])
def test_total_pages_is_ceiling(total, limit, expected_pages):
    pagination = Pagination.build(PageRequest(page=1, limit=limit), total)
    assert pagination.total_pages == expected_pages
    assert pagination.total == total


def test_has_next_and_has_prev():
    middle = Pagination.build(PageRequest(page=2, limit=10), 35)
    assert middle.has_next and middle.has_prev
    last = Pagination.build(PageRequest(page=4, limit=10), 35)
    assert not last.has_next and last.has_prev
    first = Pagination.build(PageRequest(page=1, limit=10), 35)
    assert first.has_next and not first.has_prev
    empty = Pagination.build(PageRequest(page=1, limit=10), 0)
    assert not empty.has_next and not empty.has_prev


def test_resolve_filter_blank_values_mean_no_filter():
    assert resolve_filter(None, None) == SubscriptionFilter()
    assert resolve_filter("   ", "  ") == SubscriptionFilter()


def test_resolve_filter_parses_user_and_trims_service():
    user_id = uuid.uuid4()
    subscription_filter = resolve_filter(f" {user_id} ", " Yandex Plus ")
    assert subscription_filter.user_id == user_id
    assert subscription_filter.service_name == "Yandex Plus"


def test_resolve_filter_rejects_bad_user_id():
    with pytest.raises(ValidationError) as excinfo:
        resolve_filter("not-a-uuid", None)
    assert str(excinfo.value) == "invalid user_id"
