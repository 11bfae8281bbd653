"""Tests for WellConfig and shared model types."""

import pytest
from pydantic import BaseModel, ValidationError

from tests.conftest import PRICING_ADDRESS, PUMP_ADDRESSES, TOKEN_A, TOKEN_B, TOKEN_C
from well.errors import InvalidConfig
from well.models import UINT256_MAX, Call, HexBytes, Uint256, WellConfig, normalize_address


def make(tokens=(TOKEN_A, TOKEN_B), **kwargs) -> WellConfig:
    return WellConfig(tokens=tokens, pricing_function=Call(target=PRICING_ADDRESS), **kwargs)


class TestWellConfig:
    def test_construct_by_name_and_alias(self):
        by_name = make()
        by_alias = WellConfig.model_validate(
            {"tokens": [TOKEN_A, TOKEN_B], "pricingFunction": {"target": PRICING_ADDRESS}}
        )
        assert by_name == by_alias

    def test_addresses_normalized(self):
        config = make(tokens=(TOKEN_A.upper().replace("0X", "0x"), TOKEN_B))
        assert config.tokens == (TOKEN_A, TOKEN_B)

    def test_needs_two_tokens(self):
        with pytest.raises(InvalidConfig):
            make(tokens=(TOKEN_A,))

    def test_duplicate_tokens(self):
        with pytest.raises(InvalidConfig):
            make(tokens=(TOKEN_A, TOKEN_B, TOKEN_A.upper().replace("0X", "0x")))

    def test_invalid_address(self):
        with pytest.raises(ValidationError):
            make(tokens=(TOKEN_A, "0x1234"))

    def test_frozen(self):
        config = make()
        with pytest.raises(ValidationError):
            config.tokens = (TOKEN_B, TOKEN_A)  # type: ignore[misc]

    def test_structural_equality(self):
        assert make() == make()
        assert make() != make(tokens=(TOKEN_B, TOKEN_A))
        assert make() != make(pumps=(Call(target=PUMP_ADDRESSES[0]),))
        assert make() != WellConfig(
            tokens=(TOKEN_A, TOKEN_B), pricing_function=Call(target=PRICING_ADDRESS, data=b"\x01")
        )

    def test_index_of(self):
        config = make(tokens=(TOKEN_A, TOKEN_B, TOKEN_C))
        assert config.token_count == 3
        assert config.index_of(TOKEN_C) == 2
        assert config.index_of(TOKEN_B.upper().replace("0X", "0x")) == 1
        assert config.index_of("0x" + "99" * 20) is None

    def test_json_round_trip(self):
        config = make(pumps=(Call(target=PUMP_ADDRESSES[0], data=b"\x01\x02"),))
        payload = config.model_dump(by_alias=True, mode="json")
        assert payload["pricingFunction"]["data"] == "0x"
        assert payload["pumps"][0]["data"] == "0x0102"
        assert WellConfig.model_validate(payload) == config


class TestCall:
    def test_hex_data(self):
        assert Call(target=PRICING_ADDRESS, data="0xdeadbeef").data == bytes.fromhex("deadbeef")

    def test_bad_hex_data(self):
        with pytest.raises(ValidationError):
            Call(target=PRICING_ADDRESS, data="deadbeef")


class Amounts(BaseModel):
    amount: Uint256
    blob: HexBytes = b""


class TestTypes:
    def test_uint256_from_string(self):
        assert Amounts(amount="1000").amount == 1000

    def test_uint256_serialized_as_string(self):
        assert Amounts(amount=5).model_dump(mode="json")["amount"] == "5"

    @pytest.mark.parametrize("value", [-1, UINT256_MAX + 1, "abc", True, 1.5])
    def test_uint256_rejects(self, value):
        with pytest.raises(ValidationError):
            Amounts(amount=value)

    def test_normalize_address(self):
        assert normalize_address("AB" * 20) == "0x" + "ab" * 20

    def test_normalize_address_validate(self):
        with pytest.raises(ValueError):
            normalize_address("0x12", validate=True)
