from typing import Any, Optional, Type, TypeVar
from urllib.parse import quote

import httpx
import structlog
from pydantic import BaseModel, ValidationError

from storefront import config
from storefront.errors import CatalogRequestError
from storefront.models import Product, ProductDetail, Review, ReviewInput, Seller

logger = structlog.get_logger(__name__)

M = TypeVar("M", bound=BaseModel)


class CatalogApiClient:
    """Async client for the catalog / seller backend.

    Every failure, whether a non-2xx answer, a transport error or an
    unparseable body, is raised as ``CatalogRequestError``.
    """

    def __init__(
        self,
        base_url: str = config.CATALOG_API_URL,
        timeout: float = config.HTTP_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url
        self.timeout = timeout
        self._transport = transport

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        async with httpx.AsyncClient(
            base_url=self.base_url, timeout=self.timeout, transport=self._transport
        ) as client:
            try:
                response = await client.request(method, path, **kwargs)
                response.raise_for_status()
            except httpx.HTTPStatusError as exc:
                status = exc.response.status_code
                logger.warning("catalog_api_error", method=method, path=path, status_code=status)
                raise CatalogRequestError(f"{method} {path} answered {status}", status) from exc
            except httpx.HTTPError as exc:
                logger.warning("catalog_api_unreachable", method=method, path=path, error=str(exc))
                raise CatalogRequestError(f"{method} {path} failed: {exc}") from exc

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise CatalogRequestError(f"{method} {path} returned invalid JSON", response.status_code) from exc

    @staticmethod
    def _parse(model: Type[M], data: Any) -> M:
        try:
            return model.model_validate(data)
        except ValidationError as exc:
            raise CatalogRequestError(f"Unexpected {model.__name__} payload: {exc}") from exc

    def _parse_list(self, data: Any) -> list[Product]:
        # list endpoints wrap their rows in {"result": [...]}; a missing result means empty
        rows = data.get("result") if isinstance(data, dict) else None
        return [self._parse(Product, row) for row in rows or []]

    # ── products ──────────────────────────────────────────────────────────────

    async def get_products(self) -> list[Product]:
        return self._parse_list(await self._request("GET", "/products"))

    async def search_products(self, name: str) -> list[Product]:
        return self._parse_list(await self._request("GET", "/products", params={"name": name}))

    async def get_products_by_seller(self, seller_id: str) -> list[Product]:
        return self._parse_list(await self._request("GET", f"/products/shops/{quote(seller_id, safe='')}"))

    async def get_product(self, product_id: str) -> ProductDetail:
        return self._parse(ProductDetail, await self._request("GET", f"/products/{quote(product_id, safe='')}"))

    async def create_product(self, product: Product) -> Product:
        body = product.model_dump(exclude=None if product.id else {"id"})
        return self._parse(Product, await self._request("POST", "/products", json={"product": body}))

    async def edit_product(self, product: Product) -> Product:
        body = product.model_dump(exclude={"id"})
        data = await self._request("PUT", f"/products/{quote(product.id, safe='')}", json=body)
        return self._parse(Product, data)

    # ── reviews ───────────────────────────────────────────────────────────────

    async def create_review(self, user_id: str, product_id: str, review: ReviewInput) -> Review:
        data = await self._request(
            "POST",
            "/reviews",
            json=review.model_dump(exclude_none=True),
            params={"userId": user_id, "productId": product_id},
        )
        return self._parse(Review, data)

    async def edit_review(self, review: ReviewInput) -> Review:
        data = await self._request(
            "PUT", f"/reviews/{quote(review.id or '', safe='')}", json=review.model_dump(exclude_none=True)
        )
        return self._parse(Review, data)

    # ── sellers ───────────────────────────────────────────────────────────────

    async def get_seller_by_name(self, name: str) -> Seller:
        return self._parse(Seller, await self._request("GET", f"/sellers/name/{quote(name, safe='')}"))
