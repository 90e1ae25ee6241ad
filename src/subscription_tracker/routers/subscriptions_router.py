from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy.orm import Session

from subscription_tracker.errors import NotFoundError, SubscriptionError, ValidationError
from subscription_tracker.logging_config import request_logger
from subscription_tracker.models.base import get_db
from subscription_tracker.schemas import (
    PaginationOut,
    SubscriptionCreate,
    SubscriptionOut,
    SubscriptionPage,
    SubscriptionUpdate,
    SumOut,
)
from subscription_tracker.service import SubscriptionService
from subscription_tracker.store import SubscriptionStore

router = APIRouter()


def get_service(request: Request, db: Session = Depends(get_db)) -> SubscriptionService:
    request_id = getattr(request.state, "request_id", "-")
    log = request_logger(request_id, method=request.method, path=request.url.path)
    return SubscriptionService(SubscriptionStore(db), log)


def _to_http(error: SubscriptionError, service: SubscriptionService) -> HTTPException:
    if isinstance(error, ValidationError):
        service.log.error(str(error))
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))
    if isinstance(error, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))
    # StorageError: the store already logged the cause.
    service.log.error(f"Storage failure: {error}")
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="db error")


@router.post("/", status_code=201, response_model=SubscriptionOut)
async def create_subscription(body: SubscriptionCreate, service: SubscriptionService = Depends(get_service)):
    service.log.info("Creating new subscription")
    try:
        return SubscriptionOut.from_model(service.create(body))
    except SubscriptionError as e:
        raise _to_http(e, service)


@router.get("/", status_code=200, response_model=SubscriptionPage)
async def list_subscriptions(
    page: Optional[str] = None,
    limit: Optional[str] = None,
    user_id: Optional[str] = None,
    service_name: Optional[str] = None,
    service: SubscriptionService = Depends(get_service),
):
    service.log.info("Listing subscriptions")
    try:
        items, pagination = service.list(page, limit, user_id, service_name)
    except SubscriptionError as e:
        raise _to_http(e, service)
    return SubscriptionPage(
        data=[SubscriptionOut.from_model(item) for item in items],
        pagination=PaginationOut.from_pagination(pagination),
    )


@router.get("/sum/{userid}", status_code=200, response_model=SumOut)
async def sum_subscriptions(
    userid: str,
    start: Optional[str] = None,
    end: Optional[str] = None,
    service_name: Optional[str] = None,
    service: SubscriptionService = Depends(get_service),
):
    service.log.info("Calculating subscription sum", extra={"user_id": userid})
    try:
        return SumOut(sum=service.sum_for_user(userid, start, end, service_name))
    except SubscriptionError as e:
        raise _to_http(e, service)


@router.get("/{subscription_id}", status_code=200, response_model=SubscriptionOut)
async def get_subscription(subscription_id: str, service: SubscriptionService = Depends(get_service)):
    service.log.info("Getting subscription", extra={"subscription_id": subscription_id})
    try:
        return SubscriptionOut.from_model(service.get(subscription_id))
    except SubscriptionError as e:
        raise _to_http(e, service)


@router.put("/{subscription_id}", status_code=200, response_model=SubscriptionOut)
async def update_subscription(
    subscription_id: str, body: SubscriptionUpdate, service: SubscriptionService = Depends(get_service)
):
    service.log.info("Updating subscription", extra={"subscription_id": subscription_id})
    try:
        updated = service.update(subscription_id, body)
    except SubscriptionError as e:
        raise _to_http(e, service)
    if updated is None:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    return SubscriptionOut.from_model(updated)


@router.delete("/{subscription_id}", status_code=204)
async def delete_subscription(subscription_id: str, service: SubscriptionService = Depends(get_service)):
    service.log.info("Deleting subscription", extra={"subscription_id": subscription_id})
    try:
        service.delete(subscription_id)
    except SubscriptionError as e:
        raise _to_http(e, service)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
