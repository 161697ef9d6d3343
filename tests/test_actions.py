"""
Tests for the async catalog / seller operations against a mocked backend.
"""

import asyncio
import json

import httpx
import pytest

from storefront import actions
from storefront.catalog import CatalogStore
from storefront.client import CatalogApiClient
from storefront.errors import CatalogRequestError
from storefront.models import ErrorState, Product, ReviewInput
from storefront.sellers import SELLER_NOT_FOUND, SellerStore


# ── fixtures ──────────────────────────────────────────────────────────────────

PRODUCTS = [
    {"id": "P-1", "name": "Joystick", "stock": 3, "price_local": 5000, "categories": "Gaming"},
    {"id": "P-2", "name": "Headset", "stock": 1, "price_local": 12000, "price_dolar": 40.5},
]


def make_api(handler) -> CatalogApiClient:
    return CatalogApiClient(base_url="http://catalog.test", transport=httpx.MockTransport(handler))


def failing(request):
    raise httpx.ConnectError("connection refused", request=request)


def ids(products):
    return [p.id for p in products]


# ── tests ─────────────────────────────────────────────────────────────────────

class TestFetchAll:
    @pytest.mark.asyncio
    async def test_success_fills_all_and_view(self):
        store = CatalogStore()
        api = make_api(lambda request: httpx.Response(200, json={"result": PRODUCTS}))
        result = await actions.fetch_all(store, api)
        assert ids(result) == ["P-1", "P-2"]
        assert ids(store.state.all) == ["P-1", "P-2"]
        assert ids(store.state.view) == ["P-1", "P-2"]
        assert store.state.view[1].price_dolar == 40.5

    @pytest.mark.asyncio
    async def test_missing_result_means_empty_list(self):
        store = CatalogStore()
        api = make_api(lambda request: httpx.Response(200, json={}))
        assert await actions.fetch_all(store, api) == []
        assert store.state.view == []
        assert store.state.error == ErrorState()

    @pytest.mark.asyncio
    async def test_network_failure_sets_error(self):
        store = CatalogStore()
        assert await actions.fetch_all(store, make_api(failing)) is None
        assert store.state.error == ErrorState(code=404, message="An error ocurred while getting all the products")

    @pytest.mark.asyncio
    async def test_failure_then_search_clears_error(self):
        store = CatalogStore()
        await actions.fetch_all(store, make_api(failing))
        api = make_api(lambda request: httpx.Response(200, json={"result": PRODUCTS[:1]}))
        await actions.search(store, api, "Joy")
        assert store.state.error == ErrorState(code=None, message=None)

    @pytest.mark.asyncio
    async def test_server_error_sets_error(self):
        store = CatalogStore()
        await actions.fetch_all(store, make_api(lambda request: httpx.Response(500)))
        assert store.state.error.code == 404


class TestSearchAndDetails:
    @pytest.mark.asyncio
    async def test_search_sends_name_and_replaces_all(self):
        seen = []

        def handler(request):
            seen.append(request.url.params.get("name"))
            return httpx.Response(200, json={"result": PRODUCTS[1:]})

        store = CatalogStore()
        await actions.search(store, make_api(handler), "Head set")
        assert seen == ["Head set"]
        assert ids(store.state.all) == ["P-2"]

    @pytest.mark.asyncio
    async def test_search_failure(self):
        store = CatalogStore()
        await actions.search(store, make_api(failing), "x")
        assert store.state.error.message == "An error ocurred while searching for the product"

    @pytest.mark.asyncio
    async def test_fetch_by_seller_failure(self):
        store = CatalogStore()
        assert await actions.fetch_by_seller(store, make_api(failing), "S-001") is None
        assert store.state.error == ErrorState(
            code=404, message="An error ocurred while getting the products of the shop"
        )

    @pytest.mark.asyncio
    async def test_fetch_by_seller_hits_shop_route(self):
        paths = []

        def handler(request):
            paths.append(request.url.path)
            return httpx.Response(200, json={"result": PRODUCTS})

        store = CatalogStore()
        await actions.fetch_by_seller(store, make_api(handler), "S-001")
        assert paths == ["/products/shops/S-001"]
        assert ids(store.state.view) == ["P-1", "P-2"]

    @pytest.mark.asyncio
    async def test_fetch_by_id_with_reviews(self):
        detail = dict(PRODUCTS[0], reviews=[{"id": "R-1", "body": "nice", "score": 4, "user": {"id": "U-1"}}])
        store = CatalogStore()
        await actions.fetch_by_id(store, make_api(lambda request: httpx.Response(200, json=detail)), "P-1")
        assert store.state.details.name == "Joystick"
        assert store.state.details.reviews[0].user == {"id": "U-1"}

    @pytest.mark.asyncio
    async def test_fetch_by_id_not_found(self):
        store = CatalogStore()
        await actions.fetch_by_id(store, make_api(lambda request: httpx.Response(404)), "P-404")
        assert store.state.error == ErrorState(
            code=404, message="An error ocurred while searching the product through its Id"
        )


class TestCreateAndEdit:
    @pytest.mark.asyncio
    async def test_create_wraps_body_and_appends(self):
        bodies = []

        def handler(request):
            bodies.append(json.loads(request.content))
            return httpx.Response(201, json=dict(PRODUCTS[0], id="P-9"))

        store = CatalogStore()
        new = Product(name="Joystick", stock=3, price_local=5000)
        created = await actions.create_product(store, make_api(handler), new)
        assert created.id == "P-9"
        assert "product" in bodies[0]
        assert "id" not in bodies[0]["product"]
        assert ids(store.state.view) == ["P-9"]

    @pytest.mark.asyncio
    async def test_create_rejected_is_bad_request(self):
        store = CatalogStore()
        new = Product(name="Joystick", price_local=1)
        await actions.create_product(store, make_api(lambda request: httpx.Response(422)), new)
        assert store.state.error == ErrorState(code=400, message="An error ocurred while creating the product")

    @pytest.mark.asyncio
    async def test_edit_replaces_record_with_response(self):
        store = CatalogStore()
        await actions.fetch_all(store, make_api(lambda request: httpx.Response(200, json={"result": PRODUCTS})))
        response = dict(PRODUCTS[1], name="Headset Pro", price_local=15000)
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, json=response)

        edited = Product(**dict(PRODUCTS[1], name="Headset Pro", price_local=15000))
        await actions.edit_product(store, make_api(handler), edited)
        assert requests[0].method == "PUT"
        assert requests[0].url.path == "/products/P-2"
        assert "id" not in json.loads(requests[0].content)
        assert store.state.view[1] == Product(**response)
        assert store.state.view[0] == Product(**PRODUCTS[0])

    @pytest.mark.asyncio
    async def test_edit_requires_id(self):
        with pytest.raises(ValueError):
            await actions.edit_product(CatalogStore(), make_api(failing), Product(name="x", price_local=1))

    @pytest.mark.asyncio
    async def test_edit_failure(self):
        store = CatalogStore()
        await actions.edit_product(store, make_api(failing), Product(id="P-1", name="x", price_local=1))
        assert store.state.error.message == "An error ocurred when editing the product"


class TestReviews:
    @pytest.mark.asyncio
    async def test_create_then_edit_review(self):
        def handler(request):
            body = json.loads(request.content)
            if request.method == "POST":
                assert request.url.params["userId"] == "U-1"
                assert request.url.params["productId"] == "P-1"
                return httpx.Response(201, json=dict(body, id="R-7"))
            return httpx.Response(200, json=body)

        store = CatalogStore()
        api = make_api(handler)
        await actions.create_review(store, api, "U-1", "P-1", ReviewInput(body="meh", score=2))
        await actions.edit_review(store, api, ReviewInput(id="R-7", body="great", score=5))
        reviews = store.state.details.reviews
        assert [r.id for r in reviews] == ["R-7"]
        assert reviews[0].body == "great"
        assert reviews[0].score == 5

    @pytest.mark.asyncio
    async def test_review_transport_failure_is_raised(self):
        store = CatalogStore()
        with pytest.raises(CatalogRequestError):
            await actions.create_review(store, make_api(failing), "U-1", "P-1", ReviewInput(body="x"))
        assert store.state.details.reviews == []

    @pytest.mark.asyncio
    async def test_edit_review_upstream_status_is_kept(self):
        store = CatalogStore()
        with pytest.raises(CatalogRequestError) as info:
            await actions.edit_review(store, make_api(lambda request: httpx.Response(404)), ReviewInput(id="R-1"))
        assert info.value.status_code == 404


class FakeApi:
    """Lets a test decide the order in which responses resolve."""

    def __init__(self):
        self.gates = {}

    async def get_products(self):
        return await self._wait("all")

    async def search_products(self, name):
        return await self._wait(name)

    async def get_seller_by_name(self, name):
        return await self._wait(name)

    async def _wait(self, key):
        gate = asyncio.get_running_loop().create_future()
        self.gates.setdefault(key, []).append(gate)
        return await gate

    def resolve(self, key, value):
        # requests for the same key resolve oldest first
        gate = self.gates[key].pop(0)
        if isinstance(value, Exception):
            gate.set_exception(value)
        else:
            gate.set_result(value)


class TestStaleResponses:
    @pytest.mark.asyncio
    async def test_fetch_all_keeps_view_when_search_overtakes_it(self):
        store = CatalogStore()
        api = FakeApi()
        fetch = asyncio.ensure_future(actions.fetch_all(store, api))
        lookup = asyncio.ensure_future(actions.search(store, api, "Head"))
        await asyncio.sleep(0)

        api.resolve("Head", [Product(**PRODUCTS[1])])
        await lookup
        api.resolve("all", [Product(**p) for p in PRODUCTS])
        assert ids(await fetch) == ["P-1", "P-2"]

        assert ids(store.state.all) == ["P-2"]
        assert ids(store.state.view) == ["P-1", "P-2"]

    @pytest.mark.asyncio
    async def test_older_fetch_all_is_dropped(self):
        store = CatalogStore()
        api = FakeApi()
        older = asyncio.ensure_future(actions.fetch_all(store, api))
        newer = asyncio.ensure_future(actions.fetch_all(store, api))
        await asyncio.sleep(0)

        api.resolve("all", [Product(**PRODUCTS[0])])
        api.resolve("all", [Product(**PRODUCTS[1])])
        await newer
        await older
        assert ids(store.state.all) == ["P-2"]
        assert ids(store.state.view) == ["P-2"]

    @pytest.mark.asyncio
    async def test_older_fetch_all_resolving_last_is_dropped(self):
        store = CatalogStore()
        api = FakeApi()
        older = asyncio.ensure_future(actions.fetch_all(store, api))
        newer = asyncio.ensure_future(actions.fetch_all(store, api))
        await asyncio.sleep(0)

        older_gate, newer_gate = api.gates["all"]
        newer_gate.set_result([Product(**PRODUCTS[1])])
        await newer
        older_gate.set_result([Product(**PRODUCTS[0])])
        assert await older is None
        assert ids(store.state.all) == ["P-2"]
        assert ids(store.state.view) == ["P-2"]

    @pytest.mark.asyncio
    async def test_stale_failure_does_not_set_error(self):
        store = CatalogStore()
        api = FakeApi()
        older = asyncio.ensure_future(actions.search(store, api, "a"))
        newer = asyncio.ensure_future(actions.search(store, api, "b"))
        await asyncio.sleep(0)

        api.resolve("b", [])
        await newer
        api.resolve("a", CatalogRequestError("late failure"))
        await older
        assert store.state.error == ErrorState()

    @pytest.mark.asyncio
    async def test_overtaken_fetch_all_failure_still_reported(self):
        store = CatalogStore()
        api = FakeApi()
        fetch = asyncio.ensure_future(actions.fetch_all(store, api))
        lookup = asyncio.ensure_future(actions.search(store, api, "a"))
        await asyncio.sleep(0)

        api.resolve("a", [])
        await lookup
        api.resolve("all", CatalogRequestError("backend down"))
        await fetch
        assert store.state.error.message == "An error ocurred while getting all the products"


class TestSellerFetch:
    @pytest.mark.asyncio
    async def test_found(self):
        paths = []

        def handler(request):
            paths.append(request.url.raw_path)
            return httpx.Response(200, json={"id": "S-1", "name": "tu gamer", "nombreNegocio": "Tu Gamer"})

        store = SellerStore()
        await actions.get_seller_by_name(store, make_api(handler), "tu gamer")
        assert paths == [b"/sellers/name/tu%20gamer"]
        assert store.state.seller.business_name == "Tu Gamer"

    @pytest.mark.asyncio
    async def test_not_found_marker(self):
        store = SellerStore()
        await actions.get_seller_by_name(store, make_api(lambda request: httpx.Response(404)), "ghost")
        assert store.state.error == ErrorState(code=404, message=SELLER_NOT_FOUND)

    @pytest.mark.asyncio
    async def test_transport_failure_is_not_not_found(self):
        store = SellerStore()
        await actions.get_seller_by_name(store, make_api(failing), "tu-gamer")
        assert store.state.error.code == 502
        assert store.state.error.message != SELLER_NOT_FOUND
