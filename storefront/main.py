from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import Depends, FastAPI, HTTPException, Query

from storefront import actions, config
from storefront.catalog import CatalogStore
from storefront.client import CatalogApiClient
from storefront.errors import CatalogRequestError, PaymentError, PaymentNotConfigured, UnknownThemeError
from storefront.log import configure_logging
from storefront.models import CheckoutRequest, Product, RenderState, ReviewInput, ShopVisibility
from storefront.payments import StripeGateway
from storefront.resolver import ShopVisibilityResolver
from storefront.sellers import SellerStore

# module-level singletons used by the app
catalog = CatalogStore()
api = CatalogApiClient()
gateway = StripeGateway()


def get_catalog() -> CatalogStore:
    return catalog


def get_api() -> CatalogApiClient:
    return api


def get_gateway() -> StripeGateway:
    return gateway


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    # Warm the catalog on startup so the first page load has products
    if config.WARM_CATALOG_ON_STARTUP:
        await actions.fetch_all(catalog, api)
    yield


app = FastAPI(
    title="Storefront Service",
    version="1.0.0",
    description="Shop visibility, product catalog and checkout for the storefront",
    lifespan=lifespan,
)


def _products(products: list[Product]) -> dict:
    return {"products": [p.model_dump() for p in products]}


def _raise_catalog_error(store: CatalogStore) -> None:
    error = store.state.error
    if error.code is not None:
        raise HTTPException(error.code, error.message)


# ── Shops ────────────────────────────────────────────────────────────────────

@app.get(
    "/api/v1/shops/{shop_name}/visibility",
    summary="Resolve how a shop page renders",
    response_model=ShopVisibility,
)
async def get_shop_visibility(shop_name: str, client: CatalogApiClient = Depends(get_api)):
    sellers = SellerStore()
    resolver = ShopVisibilityResolver(sellers, lambda name: actions.get_seller_by_name(sellers, client, name))
    try:
        resolver.set_shop_name(shop_name)
        state = await resolver.settle()
        error = sellers.state.error
        if state is RenderState.LOADING:
            # the seller backend failed for a reason other than an unknown shop,
            # or answered with a record that has no id
            raise HTTPException(error.code or 502, error.message or "Seller backend returned a record without an id")
        try:
            theme = resolver.theme()
        except UnknownThemeError as exc:
            raise HTTPException(422, str(exc))
    finally:
        resolver.close()
    return ShopVisibility(shop_name=shop_name, state=state, theme=theme)


# ── Catalog ──────────────────────────────────────────────────────────────────

@app.get("/api/v1/catalog/products", summary="Displayed products, optionally re-sorted by price")
async def list_products(
    sort: Optional[str] = Query(default=None, description="asc, des, or anything else to reset the order"),
    store: CatalogStore = Depends(get_catalog),
):
    if sort is not None:
        store.sort(sort)
    return _products(store.state.view)


@app.get("/api/v1/catalog/products/all", summary="Products in server order")
async def list_all_products(store: CatalogStore = Depends(get_catalog)):
    return _products(store.state.all)


@app.post("/api/v1/catalog/refresh", summary="Reload every product from the backend")
async def refresh_products(
    store: CatalogStore = Depends(get_catalog), client: CatalogApiClient = Depends(get_api)
):
    if await actions.fetch_all(store, client) is None:
        _raise_catalog_error(store)
    return _products(store.state.view)


@app.get("/api/v1/catalog/search", summary="Search products by name")
async def search_products(
    name: str = Query(..., min_length=1),
    store: CatalogStore = Depends(get_catalog),
    client: CatalogApiClient = Depends(get_api),
):
    if await actions.search(store, client, name) is None:
        _raise_catalog_error(store)
    return _products(store.state.all)


@app.get("/api/v1/catalog/shops/{seller_id}/products", summary="Load one shop's products")
async def shop_products(
    seller_id: str, store: CatalogStore = Depends(get_catalog), client: CatalogApiClient = Depends(get_api)
):
    if await actions.fetch_by_seller(store, client, seller_id) is None:
        _raise_catalog_error(store)
    return _products(store.state.view)


@app.get("/api/v1/catalog/products/{product_id}", summary="Product details with reviews")
async def get_product(
    product_id: str, store: CatalogStore = Depends(get_catalog), client: CatalogApiClient = Depends(get_api)
):
    if await actions.fetch_by_id(store, client, product_id) is None:
        _raise_catalog_error(store)
    return store.state.details.model_dump()


@app.post("/api/v1/catalog/products", summary="Create a product", status_code=201)
async def create_product(
    product: Product, store: CatalogStore = Depends(get_catalog), client: CatalogApiClient = Depends(get_api)
):
    created = await actions.create_product(store, client, product)
    if created is None:
        _raise_catalog_error(store)
    return created.model_dump()


@app.put("/api/v1/catalog/products/{product_id}", summary="Edit a product")
async def edit_product(
    product_id: str,
    product: Product,
    store: CatalogStore = Depends(get_catalog),
    client: CatalogApiClient = Depends(get_api),
):
    edited = await actions.edit_product(store, client, product.model_copy(update={"id": product_id}))
    if edited is None:
        _raise_catalog_error(store)
    return edited.model_dump()


@app.post("/api/v1/catalog/reviews", summary="Review a product", status_code=201)
async def create_review(
    review: ReviewInput,
    user_id: str = Query(...),
    product_id: str = Query(...),
    store: CatalogStore = Depends(get_catalog),
    client: CatalogApiClient = Depends(get_api),
):
    try:
        created = await actions.create_review(store, client, user_id, product_id, review)
    except CatalogRequestError as exc:
        raise HTTPException(exc.status_code or 502, str(exc))
    return created.model_dump()


@app.put("/api/v1/catalog/reviews/{review_id}", summary="Edit a review")
async def edit_review(
    review_id: str,
    review: ReviewInput,
    store: CatalogStore = Depends(get_catalog),
    client: CatalogApiClient = Depends(get_api),
):
    try:
        edited = await actions.edit_review(store, client, review.model_copy(update={"id": review_id}))
    except CatalogRequestError as exc:
        raise HTTPException(exc.status_code or 502, str(exc))
    return edited.model_dump()


@app.get("/api/v1/catalog/error", summary="Outcome of the most recent catalog operation")
async def get_catalog_error(store: CatalogStore = Depends(get_catalog)):
    return store.state.error.model_dump()


# ── Checkout ─────────────────────────────────────────────────────────────────

@app.post("/api/checkout", summary="Charge a card for an order")
def checkout(body: CheckoutRequest, payments: StripeGateway = Depends(get_gateway)):
    try:
        payments.charge(body.id, body.amount, body.description)
    except PaymentNotConfigured as exc:
        raise HTTPException(503, str(exc))
    except PaymentError as exc:
        raise HTTPException(exc.status_code, str(exc))
    return {"message": "Success"}


def run() -> None:
    uvicorn.run(app, host=config.HOST, port=config.PORT, log_level=config.LOG_LEVEL.lower())
