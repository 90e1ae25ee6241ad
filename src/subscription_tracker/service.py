import logging
import uuid
from typing import Any, Dict, List, Optional, Tuple, Union

from subscription_tracker.errors import NotFoundError, ValidationError
from subscription_tracker.models.subscription import Subscription
from subscription_tracker.months import parse_month
from subscription_tracker.overlap import Period, contributions
from subscription_tracker.query import Pagination, parse_uuid, resolve_filter, resolve_page
from subscription_tracker.schemas import SubscriptionCreate, SubscriptionUpdate
from subscription_tracker.store import SubscriptionStore

Log = Union[logging.Logger, logging.LoggerAdapter]


def _blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


class SubscriptionService:
    """
    Validates input, talks to the store and runs the overlap calculator.

    One instance serves one request; the logger it is given carries that
    request's context.
    """

    def __init__(self, store: SubscriptionStore, log: Optional[Log] = None) -> None:
        self.store = store
        self.log = log or logging.getLogger(__name__)

    def create(self, request: SubscriptionCreate) -> Subscription:
        """
        Validate and persist a new subscription.

        :raises ValidationError: on a blank service name, negative price,
            malformed user id or dates, or an end month before the start month.
        """
        service_name = request.service_name.strip()
        if not service_name:
            raise ValidationError("service_name is required")
        if request.price < 0:
            raise ValidationError("invalid price")
        user_id = parse_uuid(request.user_id, "user_id")
        start_date = parse_month(request.start_date, "start_date")
        end_date = None
        if not _blank(request.end_date):
            end_date = parse_month(request.end_date, "end_date")
            if end_date < start_date:
                raise ValidationError("end_date must not be before start_date")

        subscription = Subscription(
            id=uuid.uuid4(),
            service_name=service_name,
            price=request.price,
            user_id=user_id,
            start_date=start_date,
            end_date=end_date,
        )
        self.log.debug("Creating subscription in database",
                       extra={"subscription_id": str(subscription.id), "user_id": str(user_id)})
        self.store.create(subscription)
        self.log.info("Subscription created successfully",
                      extra={"subscription_id": str(subscription.id), "service_name": service_name})
        return subscription

    def get(self, raw_id: str) -> Subscription:
        subscription_id = parse_uuid(raw_id, "id")
        subscription = self.store.get(subscription_id)
        if subscription is None:
            self.log.warning("Subscription not found", extra={"subscription_id": str(subscription_id)})
            raise NotFoundError("not found")
        return subscription

    def list(
        self,
        page: Optional[str] = None,
        limit: Optional[str] = None,
        user_id: Optional[str] = None,
        service_name: Optional[str] = None,
    ) -> Tuple[List[Subscription], Pagination]:
        subscription_filter = resolve_filter(user_id, service_name)
        page_request = resolve_page(page, limit)
        total = self.store.count(subscription_filter)
        items = self.store.list(subscription_filter, page_request)
        pagination = Pagination.build(page_request, total)
        self.log.info("Subscriptions listed successfully", extra={
            "page": pagination.page, "limit": pagination.limit, "offset": page_request.offset,
            "total": total, "items_count": len(items),
        })
        return items, pagination

    def _stage(self, request: SubscriptionUpdate) -> Tuple[Dict[str, Any], Optional[uuid.UUID]]:
        supplied = request.model_fields_set
        changes: Dict[str, Any] = {}
        user_id = None
        if "service_name" in supplied and not _blank(request.service_name):
            changes["service_name"] = request.service_name.strip()
        if "price" in supplied and request.price is not None:
            if request.price < 0:
                raise ValidationError("invalid price")
            changes["price"] = request.price
        if "user_id" in supplied and not _blank(request.user_id):
            user_id = parse_uuid(request.user_id, "user_id")
        if "start_date" in supplied and not _blank(request.start_date):
            changes["start_date"] = parse_month(request.start_date, "start_date")
        if "end_date" in supplied:
            if request.end_date is None:
                changes["end_date"] = None
            elif not _blank(request.end_date):
                changes["end_date"] = parse_month(request.end_date, "end_date")
        return changes, user_id

    def update(self, raw_id: str, request: SubscriptionUpdate) -> Optional[Subscription]:
        """
        Apply the fields present in ``request`` to a subscription.

        Absent fields and blank strings are left alone, ``price: 0`` is
        applied, and ``end_date: null`` makes the subscription open-ended.

        :return: The re-read subscription, or None when nothing was staged.
        :raises NotFoundError: if the id does not resolve, including when the
            row disappears between the write and the re-read.
        """
        subscription_id = parse_uuid(raw_id, "id")
        changes, user_id = self._stage(request)

        if user_id is not None or "start_date" in changes or "end_date" in changes:
            current = self.store.get(subscription_id)
            if current is None:
                raise NotFoundError("not found")
            if user_id is not None and user_id != current.user_id:
                raise ValidationError("user_id is immutable")
            start_date = changes.get("start_date", current.start_date)
            end_date = changes.get("end_date", current.end_date)
            if end_date is not None and end_date < start_date:
                raise ValidationError("end_date must not be before start_date")

        if not changes:
            self.log.warning("No updates provided", extra={"subscription_id": str(subscription_id)})
            return None

        self.log.debug("Updating subscription in database",
                       extra={"subscription_id": str(subscription_id), "fields": sorted(changes)})
        if self.store.update(subscription_id, changes) == 0:
            raise NotFoundError("not found")
        # Not atomic with the write above: a concurrent delete shows up here.
        subscription = self.store.get(subscription_id)
        if subscription is None:
            raise NotFoundError("not found")
        self.log.info("Subscription updated successfully", extra={"subscription_id": str(subscription_id)})
        return subscription

    def delete(self, raw_id: str) -> None:
        subscription_id = parse_uuid(raw_id, "id")
        self.store.delete(subscription_id)
        self.log.info("Subscription deleted successfully", extra={"subscription_id": str(subscription_id)})

    def sum_for_user(
        self,
        raw_user_id: Optional[str],
        start: Optional[str],
        end: Optional[str],
        service_name: Optional[str] = None,
    ) -> int:
        """
        Total cost of a user's subscriptions over the months ``start``..``end``.

        :raises ValidationError: on a missing or malformed user id, missing or
            malformed bounds, or ``start`` after ``end``.
        """
        if _blank(raw_user_id):
            raise ValidationError("userid is required")
        user_id = parse_uuid(raw_user_id, "userid")
        if _blank(start) or _blank(end):
            raise ValidationError("start and end are required")
        period = Period(parse_month(start, "start"), parse_month(end, "end"))
        if period.start > period.end:
            raise ValidationError("start must not be after end")
        service_name = None if _blank(service_name) else service_name.strip()

        candidates = self.store.find_overlapping(user_id, period, service_name)
        total = 0
        for contribution in contributions(candidates, period):
            self.log.debug("Subscription contribution", extra={
                "service_name": contribution.subscription.service_name,
                "price": contribution.subscription.price,
                "months": contribution.months,
                "contribution": contribution.amount,
            })
            total += contribution.amount
        self.log.info("Sum calculated successfully", extra={
            "user_id": str(user_id), "total_sum": total, "subscriptions_processed": len(candidates),
        })
        return total
