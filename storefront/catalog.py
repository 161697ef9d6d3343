"""Product catalog state: reducer, sort and failure table."""

from typing import Callable, Optional

from pydantic import BaseModel

from storefront.models import ErrorState, Product, ProductDetail, Review, SortDirection
from storefront.store import Action, Store

# ── action types ──────────────────────────────────────────────────────────────

PRODUCTS_FETCHED = "products/fetched"
SELLER_PRODUCTS_FETCHED = "products/sellerFetched"
SEARCH_FETCHED = "products/searchFetched"
VIEW_FETCHED = "products/viewFetched"
DETAILS_FETCHED = "products/detailsFetched"
PRODUCT_CREATED = "products/created"
PRODUCT_EDITED = "products/edited"
REVIEW_CREATED = "reviews/created"
REVIEW_EDITED = "reviews/edited"
PRODUCTS_SORTED = "products/sorted"
REQUEST_FAILED = "products/requestFailed"

# request slots guarded against stale responses
ALL_SLOT = "all"
VIEW_SLOT = "view"
DETAILS_SLOT = "details"

FAILURES: dict[str, ErrorState] = {
    "fetch_all": ErrorState(code=404, message="An error ocurred while getting all the products"),
    "fetch_by_seller": ErrorState(code=404, message="An error ocurred while getting the products of the shop"),
    "fetch_by_id": ErrorState(code=404, message="An error ocurred while searching the product through its Id"),
    "search": ErrorState(code=404, message="An error ocurred while searching for the product"),
    "create": ErrorState(code=400, message="An error ocurred while creating the product"),
    "edit": ErrorState(code=404, message="An error ocurred when editing the product"),
}

_CLEAR = ErrorState()


class CatalogState(BaseModel):
    all: list[Product] = []
    view: list[Product] = []
    details: ProductDetail = ProductDetail()
    error: ErrorState = ErrorState()


def sort_products(products: list[Product], direction: Optional[str]) -> list[Product]:
    """Order by local price; unknown directions keep the given order.

    ``sorted`` is stable, also with ``reverse=True``, so equal prices keep
    their server order.
    """
    if direction == SortDirection.ASC:
        return sorted(products, key=lambda p: p.price_local)
    if direction == SortDirection.DES:
        return sorted(products, key=lambda p: p.price_local, reverse=True)
    return list(products)


# ── reducer ───────────────────────────────────────────────────────────────────

def _products_fetched(state: CatalogState, products: list[Product]) -> CatalogState:
    return state.model_copy(update={"all": list(products), "view": list(products), "error": _CLEAR})


def _search_fetched(state: CatalogState, products: list[Product]) -> CatalogState:
    return state.model_copy(update={"all": list(products), "error": _CLEAR})


def _view_fetched(state: CatalogState, products: list[Product]) -> CatalogState:
    return state.model_copy(update={"view": list(products), "error": _CLEAR})


def _details_fetched(state: CatalogState, details: ProductDetail) -> CatalogState:
    return state.model_copy(update={"details": details, "error": _CLEAR})


def _product_created(state: CatalogState, product: Product) -> CatalogState:
    return state.model_copy(update={"view": [*state.view, product], "error": _CLEAR})


def _product_edited(state: CatalogState, product: Product) -> CatalogState:
    view = [product if p.id == product.id else p for p in state.view]
    return state.model_copy(update={"view": view, "error": _CLEAR})


def _review_created(state: CatalogState, review: Review) -> CatalogState:
    details = state.details.model_copy(update={"reviews": [review, *state.details.reviews]})
    return state.model_copy(update={"details": details, "error": _CLEAR})


def _review_edited(state: CatalogState, review: Review) -> CatalogState:
    rest = [r for r in state.details.reviews if r.id != review.id]
    details = state.details.model_copy(update={"reviews": [review, *rest]})
    return state.model_copy(update={"details": details, "error": _CLEAR})


def _products_sorted(state: CatalogState, direction: Optional[str]) -> CatalogState:
    return state.model_copy(update={"view": sort_products(state.all, direction)})


def _request_failed(state: CatalogState, error: ErrorState) -> CatalogState:
    return state.model_copy(update={"error": error})


_HANDLERS: dict[str, Callable[[CatalogState, object], CatalogState]] = {
    PRODUCTS_FETCHED: _products_fetched,
    SELLER_PRODUCTS_FETCHED: _products_fetched,
    SEARCH_FETCHED: _search_fetched,
    VIEW_FETCHED: _view_fetched,
    DETAILS_FETCHED: _details_fetched,
    PRODUCT_CREATED: _product_created,
    PRODUCT_EDITED: _product_edited,
    REVIEW_CREATED: _review_created,
    REVIEW_EDITED: _review_edited,
    PRODUCTS_SORTED: _products_sorted,
    REQUEST_FAILED: _request_failed,
}


def catalog_reducer(state: CatalogState, action: Action) -> CatalogState:
    handler = _HANDLERS.get(action.type)
    if handler is None:
        return state
    return handler(state, action.payload)


class CatalogStore(Store[CatalogState]):
    def __init__(self) -> None:
        super().__init__(catalog_reducer, CatalogState())

    def sort(self, direction: Optional[str]) -> list[Product]:
        self.dispatch(Action(PRODUCTS_SORTED, direction))
        return self.state.view
