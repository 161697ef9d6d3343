from pydantic import BaseModel

from storefront.models import ErrorState, Seller
from storefront.store import Action, Store

SELLER_FETCHED = "seller/fetched"
SELLER_FAILED = "seller/failed"

SELLER_SLOT = "seller"

SELLER_NOT_FOUND = "Seller not found"


class SellerState(BaseModel):
    seller: Seller = Seller()
    error: ErrorState = ErrorState()


def seller_reducer(state: SellerState, action: Action) -> SellerState:
    if action.type == SELLER_FETCHED:
        return SellerState(seller=action.payload, error=ErrorState())
    if action.type == SELLER_FAILED:
        return state.model_copy(update={"error": action.payload})
    return state


class SellerStore(Store[SellerState]):
    def __init__(self) -> None:
        super().__init__(seller_reducer, SellerState())
