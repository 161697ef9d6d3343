"""Async catalog and seller operations.

Each operation issues one request to the backend and dispatches the outcome
into its store. Catalog failures become the store's error state instead of
raising; review failures are raised to the caller.
"""

from typing import Awaitable, Optional, TypeVar

import structlog

from storefront.catalog import (
    ALL_SLOT,
    DETAILS_FETCHED,
    DETAILS_SLOT,
    FAILURES,
    PRODUCT_CREATED,
    PRODUCT_EDITED,
    PRODUCTS_FETCHED,
    REQUEST_FAILED,
    REVIEW_CREATED,
    REVIEW_EDITED,
    SEARCH_FETCHED,
    SELLER_PRODUCTS_FETCHED,
    VIEW_FETCHED,
    VIEW_SLOT,
    CatalogStore,
)
from storefront.client import CatalogApiClient
from storefront.errors import CatalogRequestError
from storefront.models import ErrorState, Product, ProductDetail, Review, ReviewInput, Seller
from storefront.sellers import SELLER_FAILED, SELLER_FETCHED, SELLER_NOT_FOUND, SELLER_SLOT, SellerStore
from storefront.store import Action

logger = structlog.get_logger(__name__)

T = TypeVar("T")


# a list response whose other slot was taken over by a newer request
_PARTIAL: dict[frozenset, str] = {
    frozenset({ALL_SLOT}): SEARCH_FETCHED,
    frozenset({VIEW_SLOT}): VIEW_FETCHED,
}


async def _run(
    store: CatalogStore,
    operation: str,
    request: Awaitable[T],
    fulfilled: str,
    slots: tuple[str, ...] = (),
) -> Optional[T]:
    """Await ``request`` and dispatch its outcome.

    Each slot names a part of the state the request writes. Only the parts
    whose slot has not been taken over by a newer request are applied.
    Returns the payload, or ``None`` when the request failed or every slot
    was superseded.
    """
    issued = {slot: store.begin(slot) for slot in slots}
    try:
        payload = await request
    except CatalogRequestError as exc:
        if slots and not _current(store, issued):
            logger.info("stale_response_dropped", operation=operation, failed=True)
            return None
        logger.warning("catalog_operation_failed", operation=operation, status_code=exc.status_code, error=str(exc))
        store.dispatch(Action(REQUEST_FAILED, FAILURES[operation]))
        return None

    if slots:
        current = _current(store, issued)
        if not current:
            logger.info("stale_response_dropped", operation=operation)
            return None
        if len(current) < len(slots):
            logger.info("stale_response_partial", operation=operation, applied=sorted(current))
            fulfilled = _PARTIAL[current]
    store.dispatch(Action(fulfilled, payload))
    return payload


def _current(store: CatalogStore, issued: dict[str, int]) -> frozenset:
    return frozenset(slot for slot, seq in issued.items() if store.is_current(slot, seq))


# ── products ──────────────────────────────────────────────────────────────────

async def fetch_all(store: CatalogStore, api: CatalogApiClient) -> Optional[list[Product]]:
    return await _run(store, "fetch_all", api.get_products(), PRODUCTS_FETCHED, (ALL_SLOT, VIEW_SLOT))


async def fetch_by_seller(store: CatalogStore, api: CatalogApiClient, seller_id: str) -> Optional[list[Product]]:
    request = api.get_products_by_seller(seller_id)
    return await _run(store, "fetch_by_seller", request, SELLER_PRODUCTS_FETCHED, (ALL_SLOT, VIEW_SLOT))


async def search(store: CatalogStore, api: CatalogApiClient, name: str) -> Optional[list[Product]]:
    return await _run(store, "search", api.search_products(name), SEARCH_FETCHED, (ALL_SLOT,))


async def fetch_by_id(store: CatalogStore, api: CatalogApiClient, product_id: str) -> Optional[ProductDetail]:
    return await _run(store, "fetch_by_id", api.get_product(product_id), DETAILS_FETCHED, (DETAILS_SLOT,))


async def create_product(store: CatalogStore, api: CatalogApiClient, product: Product) -> Optional[Product]:
    return await _run(store, "create", api.create_product(product), PRODUCT_CREATED)


async def edit_product(store: CatalogStore, api: CatalogApiClient, product: Product) -> Optional[Product]:
    if not product.id:
        raise ValueError("Editing a product requires its id")
    return await _run(store, "edit", api.edit_product(product), PRODUCT_EDITED)


# ── reviews ───────────────────────────────────────────────────────────────────

async def create_review(
    store: CatalogStore, api: CatalogApiClient, user_id: str, product_id: str, review: ReviewInput
) -> Review:
    try:
        created = await api.create_review(user_id, product_id, review)
    except CatalogRequestError as exc:
        logger.error("review_create_failed", product_id=product_id, status_code=exc.status_code, error=str(exc))
        raise
    store.dispatch(Action(REVIEW_CREATED, created))
    return created


async def edit_review(store: CatalogStore, api: CatalogApiClient, review: ReviewInput) -> Review:
    if not review.id:
        raise ValueError("Editing a review requires its id")
    try:
        edited = await api.edit_review(review)
    except CatalogRequestError as exc:
        logger.error("review_edit_failed", review_id=review.id, status_code=exc.status_code, error=str(exc))
        raise
    store.dispatch(Action(REVIEW_EDITED, edited))
    return edited


# ── sellers ───────────────────────────────────────────────────────────────────

async def get_seller_by_name(store: SellerStore, api: CatalogApiClient, name: str) -> Optional[Seller]:
    seq = store.begin(SELLER_SLOT)
    try:
        seller = await api.get_seller_by_name(name)
    except CatalogRequestError as exc:
        if not store.is_current(SELLER_SLOT, seq):
            return None
        if exc.is_not_found:
            error = ErrorState(code=404, message=SELLER_NOT_FOUND)
        else:
            logger.warning("seller_fetch_failed", shop_name=name, status_code=exc.status_code, error=str(exc))
            error = ErrorState(code=exc.status_code or 502, message="An error ocurred while getting the seller")
        store.dispatch(Action(SELLER_FAILED, error))
        return None

    if not store.is_current(SELLER_SLOT, seq):
        logger.info("stale_response_dropped", operation="get_seller_by_name", shop_name=name)
        return None
    store.dispatch(Action(SELLER_FETCHED, seller))
    return seller
