"""Decides how a shop page renders from the seller data fetched for it."""

import asyncio
from typing import Awaitable, Callable, Optional

import structlog

from storefront.errors import UnknownThemeError
from storefront.models import ErrorState, RenderState, Seller, Theme
from storefront.sellers import SELLER_NOT_FOUND, SellerStore

logger = structlog.get_logger(__name__)

_THEMES: dict[str, Theme] = {
    "1": Theme.THEME_A,
    "2": Theme.THEME_B,
    "3": Theme.THEME_C,
}

RequestSeller = Callable[[str], Optional[Awaitable[object]]]


def _has_required_fields(seller: Seller) -> bool:
    return bool(
        seller.categories
        and seller.description
        and seller.logo
        and seller.business_name
        and seller.template_page
    )


def resolve_state(shop_name: Optional[str], seller: Seller, error: ErrorState) -> RenderState:
    # order matters: first match wins
    if not shop_name:
        return RenderState.NO_SHOP_NAME
    if not seller.id and error.message != SELLER_NOT_FOUND:
        return RenderState.LOADING
    if error.message == SELLER_NOT_FOUND:
        return RenderState.NOT_FOUND
    if _has_required_fields(seller):
        return RenderState.SUSPENDED if seller.suspended else RenderState.ACTIVE
    return RenderState.INCOMPLETE


def select_theme(template_page: Optional[str]) -> Theme:
    return _THEMES.get(template_page or "", Theme.UNKNOWN)


class ShopVisibilityResolver:
    """Keeps a shop's render state current as its route and seller data change.

    ``request_seller`` is called the first time a shop name needs loading. If
    it returns an awaitable, the resolver schedules it and ``settle`` waits
    for it.
    """

    def __init__(self, sellers: SellerStore, request_seller: RequestSeller) -> None:
        self._sellers = sellers
        self._request_seller = request_seller
        self._requested: set[str] = set()
        self._pending: list[asyncio.Future] = []
        self.shop_name: Optional[str] = None
        self.state = RenderState.LOADING
        self._unsubscribe = sellers.subscribe(self._recompute)

    def set_shop_name(self, shop_name: Optional[str]) -> RenderState:
        if shop_name != self.shop_name and self.shop_name is not None:
            self.shop_name = shop_name
            # a new route resolves from scratch; reset() triggers a recompute
            self._requested.clear()
            self._sellers.reset()
        else:
            self.shop_name = shop_name
            self._recompute()
        return self.state

    def _recompute(self) -> None:
        state = self._sellers.state
        self.state = resolve_state(self.shop_name, state.seller, state.error)
        if self.state is RenderState.LOADING and self.shop_name not in self._requested:
            self._requested.add(self.shop_name)
            logger.info("seller_requested", shop_name=self.shop_name)
            pending = self._request_seller(self.shop_name)
            if pending is not None:
                self._pending.append(asyncio.ensure_future(pending))

    async def settle(self) -> RenderState:
        """Wait for scheduled seller fetches, then report the final state."""
        while self._pending:
            await self._pending.pop(0)
        return self.state

    def theme(self) -> Optional[Theme]:
        if self.state is not RenderState.ACTIVE:
            return None
        template_page = self._sellers.state.seller.template_page
        theme = select_theme(template_page)
        if theme is Theme.UNKNOWN:
            raise UnknownThemeError(template_page)
        return theme

    def close(self) -> None:
        self._unsubscribe()
