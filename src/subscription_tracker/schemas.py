import uuid
from typing import List, Optional

from pydantic import BaseModel

from subscription_tracker.models.subscription import Subscription
from subscription_tracker.months import format_month
from subscription_tracker.query import Pagination


class SubscriptionCreate(BaseModel):
    service_name: str
    price: int
    user_id: str
    start_date: str
    end_date: Optional[str] = None


class SubscriptionUpdate(BaseModel):
    # Only fields present in the body are applied; see model_fields_set.
    service_name: Optional[str] = None
    price: Optional[int] = None
    user_id: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None


class SubscriptionOut(BaseModel):
    id: uuid.UUID
    service_name: str
    price: int
    user_id: uuid.UUID
    start_date: str
    end_date: Optional[str] = None

    @classmethod
    def from_model(cls, subscription: Subscription) -> "SubscriptionOut":
        return cls(
            id=subscription.id,
            service_name=subscription.service_name,
            price=subscription.price,
            user_id=subscription.user_id,
            start_date=format_month(subscription.start_date),
            end_date=format_month(subscription.end_date) if subscription.end_date else None,
        )


class PaginationOut(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool

    @classmethod
    def from_pagination(cls, pagination: Pagination) -> "PaginationOut":
        return cls(**vars(pagination))


class SubscriptionPage(BaseModel):
    data: List[SubscriptionOut]
    pagination: PaginationOut


class SumOut(BaseModel):
    sum: int
