import logging
import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session

from subscription_tracker.errors import StorageError
from subscription_tracker.models.subscription import Subscription
from subscription_tracker.overlap import Period
from subscription_tracker.query import PageRequest, SubscriptionFilter

logger = logging.getLogger(__name__)


class SubscriptionStore:
    """
    Persists and retrieves subscription records through a SQLAlchemy session.

    Every database failure is rolled back, logged and re-raised as a
    StorageError. Nothing is retried here.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def _fail(self, action: str, error: SQLAlchemyError, **context: Any) -> StorageError:
        self.db.rollback()
        logger.error(f"Failed to {action}: {error}", exc_info=True, extra=context)
        return StorageError(f"failed to {action}")

    def create(self, subscription: Subscription) -> Subscription:
        try:
            self.db.add(subscription)
            self.db.commit()
            self.db.refresh(subscription)
        except SQLAlchemyError as e:
            raise self._fail("create subscription", e, subscription_id=str(subscription.id))
        return subscription

    def get(self, subscription_id: uuid.UUID) -> Optional[Subscription]:
        try:
            return self.db.query(Subscription).filter(Subscription.id == subscription_id).first()
        except SQLAlchemyError as e:
            raise self._fail("fetch subscription", e, subscription_id=str(subscription_id))

    def update(self, subscription_id: uuid.UUID, changes: Dict[str, Any]) -> int:
        """
        Apply a partial update.

        :return: Number of rows the update touched (0 when the id is unknown).
        """
        try:
            updated = (
                self.db.query(Subscription)
                .filter(Subscription.id == subscription_id)
                .update(changes, synchronize_session=False)
            )
            self.db.commit()
        except SQLAlchemyError as e:
            raise self._fail("update subscription", e, subscription_id=str(subscription_id))
        # Drop cached instances so a following get sees the new row.
        self.db.expire_all()
        return updated

    def delete(self, subscription_id: uuid.UUID) -> None:
        """Delete by id. Unknown ids are not an error."""
        try:
            self.db.query(Subscription).filter(Subscription.id == subscription_id).delete(
                synchronize_session=False
            )
            self.db.commit()
        except SQLAlchemyError as e:
            raise self._fail("delete subscription", e, subscription_id=str(subscription_id))
        self.db.expire_all()

    def _filtered(self, subscription_filter: SubscriptionFilter) -> Query:
        query = self.db.query(Subscription)
        if subscription_filter.user_id is not None:
            query = query.filter(Subscription.user_id == subscription_filter.user_id)
        if subscription_filter.service_name is not None:
            query = query.filter(Subscription.service_name == subscription_filter.service_name)
        return query

    def count(self, subscription_filter: SubscriptionFilter) -> int:
        try:
            return self._filtered(subscription_filter).count()
        except SQLAlchemyError as e:
            raise self._fail("count subscriptions", e)

    def list(self, subscription_filter: SubscriptionFilter, page_request: PageRequest) -> List[Subscription]:
        try:
            return (
                self._filtered(subscription_filter)
                .order_by(Subscription.start_date, Subscription.id)
                .offset(page_request.offset)
                .limit(page_request.limit)
                .all()
            )
        except SQLAlchemyError as e:
            raise self._fail("fetch subscriptions", e)

    def find_overlapping(
        self, user_id: uuid.UUID, period: Period, service_name: Optional[str] = None
    ) -> List[Subscription]:
        """Candidate set: the user's subscriptions whose interval can touch the period."""
        subscription_filter = SubscriptionFilter(user_id=user_id, service_name=service_name)
        try:
            return (
                self._filtered(subscription_filter)
                .filter(
                    Subscription.start_date <= period.end,
                    or_(Subscription.end_date.is_(None), Subscription.end_date >= period.start),
                )
                .all()
            )
        except SQLAlchemyError as e:
            raise self._fail("fetch subscriptions for sum calculation", e, user_id=str(user_id))
