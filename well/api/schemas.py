"""Request and response models for the quote API.

Amounts travel as decimal strings (uint256), addresses as 0x-hex strings.
Every quote request carries the Well's full config, which is checked against
the served Well exactly as a direct call would be.
"""

from pydantic import BaseModel, Field

from well.models.config import Call, WellConfig
from well.models.types import Address, Uint256


class QuoteRequest(BaseModel):
    """Base for quote requests."""

    model_config = {"populate_by_name": True}

    config: WellConfig


class SwapOutQuoteRequest(QuoteRequest):
    from_token: Address = Field(alias="fromToken")
    to_token: Address = Field(alias="toToken")
    amount_in: Uint256 = Field(alias="amountIn")


class SwapInQuoteRequest(QuoteRequest):
    from_token: Address = Field(alias="fromToken")
    to_token: Address = Field(alias="toToken")
    amount_out: Uint256 = Field(alias="amountOut")


class AddLiquidityQuoteRequest(QuoteRequest):
    token_amounts_in: list[Uint256] = Field(alias="tokenAmountsIn")


class RemoveLiquidityQuoteRequest(QuoteRequest):
    lp_amount_in: Uint256 = Field(alias="lpAmountIn")


class RemoveLiquidityOneTokenQuoteRequest(QuoteRequest):
    lp_amount_in: Uint256 = Field(alias="lpAmountIn")
    token_out: Address = Field(alias="tokenOut")


class RemoveLiquidityImbalancedQuoteRequest(QuoteRequest):
    token_amounts_out: list[Uint256] = Field(alias="tokenAmountsOut")


class AmountResponse(BaseModel):
    """Single-amount quote."""

    amount: Uint256


class AmountsResponse(BaseModel):
    """Per-token-index amounts quote."""

    amounts: list[Uint256]


class WellInfo(BaseModel):
    """Identity and live state of a served Well."""

    model_config = {"populate_by_name": True}

    address: Address
    tokens: list[Address]
    pricing_function: Call = Field(alias="pricingFunction")
    pumps: list[Call]
    reserves: list[Uint256]
    lp_supply: Uint256 = Field(alias="lpSupply")


class ErrorResponse(BaseModel):
    error: str
    detail: str
