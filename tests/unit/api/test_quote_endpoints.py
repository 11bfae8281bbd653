"""Tests for the quote API endpoints."""

import inspect
import threading
import time

import pytest
from fastapi.testclient import TestClient

from tests.conftest import BOB, TOKEN_A, TOKEN_B, TOKEN_C, WELL_ADDRESS, make_well
from well.api.endpoints import WellDirectory, get_directory, router
from well.api.main import app


@pytest.fixture
def harness():
    return make_well()


@pytest.fixture
def client(harness):
    directory = WellDirectory()
    directory.register(harness.well)
    app.dependency_overrides[get_directory] = lambda: directory
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def config_payload(harness) -> dict:
    return harness.config.model_dump(by_alias=True, mode="json")


class TestWellInfo:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_list_wells(self, client):
        assert client.get("/wells").json() == [WELL_ADDRESS]

    def test_get_well(self, client, harness):
        response = client.get(f"/wells/{WELL_ADDRESS}")

        assert response.status_code == 200
        data = response.json()
        assert data["address"] == WELL_ADDRESS
        assert data["tokens"] == [TOKEN_A, TOKEN_B]
        assert data["pricingFunction"]["target"] == harness.config.pricing_function.target
        assert data["pumps"] == []
        assert data["reserves"] == ["1000", "1000"]
        assert data["lpSupply"] == "1000"

    def test_unknown_well(self, client):
        response = client.get("/wells/0x" + "99" * 20)
        assert response.status_code == 404


class TestSwapQuotes:
    def test_swap_out(self, client, harness):
        response = client.post(
            f"/wells/{WELL_ADDRESS}/quote/swap-out",
            json={
                "config": config_payload(harness),
                "fromToken": TOKEN_A,
                "toToken": TOKEN_B,
                "amountIn": "100",
            },
        )

        assert response.status_code == 200
        assert response.json() == {"amount": "90"}

    def test_swap_in(self, client, harness):
        response = client.post(
            f"/wells/{WELL_ADDRESS}/quote/swap-in",
            json={
                "config": config_payload(harness),
                "fromToken": TOKEN_A,
                "toToken": TOKEN_B,
                "amountOut": "90",
            },
        )

        assert response.status_code == 200
        assert response.json() == {"amount": "99"}

    def test_quote_does_not_mutate(self, client, harness):
        client.post(
            f"/wells/{WELL_ADDRESS}/quote/swap-out",
            json={
                "config": config_payload(harness),
                "fromToken": TOKEN_A,
                "toToken": TOKEN_B,
                "amountIn": "100",
            },
        )
        assert harness.reserves() == (1000, 1000)

    def test_same_token_is_400(self, client, harness):
        response = client.post(
            f"/wells/{WELL_ADDRESS}/quote/swap-out",
            json={
                "config": config_payload(harness),
                "fromToken": TOKEN_A,
                "toToken": TOKEN_A,
                "amountIn": "100",
            },
        )

        assert response.status_code == 400
        assert response.json()["error"] == "InvalidTokenPair"

    def test_config_mismatch_is_400(self, client, harness):
        payload = config_payload(harness)
        payload["tokens"] = [TOKEN_A, TOKEN_C]
        response = client.post(
            f"/wells/{WELL_ADDRESS}/quote/swap-out",
            json={"config": payload, "fromToken": TOKEN_A, "toToken": TOKEN_B, "amountIn": "1"},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "ConfigMismatch"

    def test_invalid_amount_is_422(self, client, harness):
        response = client.post(
            f"/wells/{WELL_ADDRESS}/quote/swap-out",
            json={
                "config": config_payload(harness),
                "fromToken": TOKEN_A,
                "toToken": TOKEN_B,
                "amountIn": "-5",
            },
        )
        assert response.status_code == 422


class TestLiquidityQuotes:
    def test_add_liquidity(self, client, harness):
        response = client.post(
            f"/wells/{WELL_ADDRESS}/quote/add-liquidity",
            json={"config": config_payload(harness), "tokenAmountsIn": ["100", "100"]},
        )
        assert response.status_code == 200
        assert response.json() == {"amount": "100"}

    def test_remove_liquidity(self, client, harness):
        response = client.post(
            f"/wells/{WELL_ADDRESS}/quote/remove-liquidity",
            json={"config": config_payload(harness), "lpAmountIn": "500"},
        )
        assert response.status_code == 200
        assert response.json() == {"amounts": ["500", "500"]}

    def test_remove_liquidity_one_token(self, client, harness):
        response = client.post(
            f"/wells/{WELL_ADDRESS}/quote/remove-liquidity-one-token",
            json={"config": config_payload(harness), "lpAmountIn": "100", "tokenOut": TOKEN_A},
        )
        assert response.status_code == 200
        assert response.json() == {"amount": "190"}

    def test_remove_liquidity_imbalanced(self, client, harness):
        response = client.post(
            f"/wells/{WELL_ADDRESS}/quote/remove-liquidity-imbalanced",
            json={"config": config_payload(harness), "tokenAmountsOut": ["190", "0"]},
        )
        assert response.status_code == 200
        assert response.json() == {"amount": "100"}

    def test_remove_more_than_supply_is_400(self, client, harness):
        response = client.post(
            f"/wells/{WELL_ADDRESS}/quote/remove-liquidity",
            json={"config": config_payload(harness), "lpAmountIn": "1001"},
        )
        assert response.status_code == 400
        assert response.json()["error"] == "InsufficientLiquidity"


class TestConcurrency:
    def test_well_routes_run_in_threadpool(self):
        routes = [route for route in router.routes if route.path.startswith("/wells")]
        assert routes
        for route in routes:
            assert not inspect.iscoroutinefunction(route.endpoint), route.path

    def test_quote_waits_for_call_in_flight(self, client, harness):
        entered = threading.Event()

        def slow_listener(event):
            entered.set()
            time.sleep(0.2)

        harness.well.subscribe(slow_listener)
        trader = threading.Thread(
            target=harness.well.swap_from,
            args=(harness.config, TOKEN_A, TOKEN_B, 100, 0, BOB, BOB),
        )
        trader.start()
        assert entered.wait(5)

        response = client.post(
            f"/wells/{WELL_ADDRESS}/quote/swap-out",
            json={
                "config": config_payload(harness),
                "fromToken": TOKEN_A,
                "toToken": TOKEN_B,
                "amountIn": "100",
            },
        )
        trader.join()

        # Quoted against the post-swap reserves (1100, 910)
        assert response.status_code == 200
        assert response.json() == {"amount": "75"}
