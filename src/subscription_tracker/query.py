import math
import re
import uuid
from dataclasses import dataclass
from typing import Optional

from subscription_tracker.errors import ValidationError

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100
# Keeps (page - 1) * limit inside a 64-bit OFFSET.
MAX_PAGE = 2**31 - 1

INT_PATTERN = re.compile(r"[+-]?[0-9]+")


@dataclass(frozen=True)
class PageRequest:
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(frozen=True)
class SubscriptionFilter:
    user_id: Optional[uuid.UUID] = None
    service_name: Optional[str] = None


@dataclass(frozen=True)
class Pagination:
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool

    @classmethod
    def build(cls, page_request: PageRequest, total: int) -> "Pagination":
        total_pages = math.ceil(total / page_request.limit)
        return cls(
            page=page_request.page,
            limit=page_request.limit,
            total=total,
            total_pages=total_pages,
            has_next=page_request.page < total_pages,
            has_prev=page_request.page > 1,
        )


def _parse_int(raw: Optional[str]) -> Optional[int]:
    if raw is None:
        return None
    text = str(raw).strip()
    if not INT_PATTERN.fullmatch(text):
        return None
    return int(text)


def resolve_page(raw_page: Optional[str] = None, raw_limit: Optional[str] = None) -> PageRequest:
    """
    Resolve untrusted ``page`` and ``limit`` query values.

    Values that do not parse, a page outside ``[1, MAX_PAGE]`` and a limit outside
    ``[1, MAX_LIMIT]`` fall back to the defaults instead of failing.
    """
    page = _parse_int(raw_page)
    if page is None or not 1 <= page <= MAX_PAGE:
        page = DEFAULT_PAGE
    limit = _parse_int(raw_limit)
    if limit is None or not 1 <= limit <= MAX_LIMIT:
        limit = DEFAULT_LIMIT
    return PageRequest(page=page, limit=limit)


def parse_uuid(raw: str, field: str) -> uuid.UUID:
    try:
        return uuid.UUID(raw.strip())
    except (AttributeError, ValueError):
        raise ValidationError(f"invalid {field}")


def resolve_filter(raw_user_id: Optional[str] = None, raw_service_name: Optional[str] = None) -> SubscriptionFilter:
    """
    Build the list filter from untrusted query values.

    Blank values mean "no filter". The service name is matched exactly, no
    case folding.

    :raises ValidationError: if a non-blank user id is not a UUID.
    """
    user_id = None
    if raw_user_id is not None and raw_user_id.strip():
        user_id = parse_uuid(raw_user_id, "user_id")
    service_name = None
    if raw_service_name is not None and raw_service_name.strip():
        service_name = raw_service_name.strip()
    return SubscriptionFilter(user_id=user_id, service_name=service_name)
