"""Quote API endpoints.

Read-only: the API serves quotes and reserves for Wells held in a
WellDirectory; it never moves tokens or mutates reserves.

Routes are plain functions, so FastAPI runs them in its threadpool. A quote
blocks on the Well lock while another call is in flight.
"""

import structlog
from fastapi import APIRouter, Depends, HTTPException

from well.api.schemas import (
    AddLiquidityQuoteRequest,
    AmountResponse,
    AmountsResponse,
    RemoveLiquidityImbalancedQuoteRequest,
    RemoveLiquidityOneTokenQuoteRequest,
    RemoveLiquidityQuoteRequest,
    SwapInQuoteRequest,
    SwapOutQuoteRequest,
    WellInfo,
)
from well.models.types import normalize_address
from well.well import Well

logger = structlog.get_logger()

router = APIRouter()


class WellDirectory:
    """Wells served by the API, keyed by address."""

    def __init__(self) -> None:
        self._wells: dict[str, Well] = {}

    def register(self, well: Well) -> None:
        if well.address in self._wells:
            logger.debug("well_replaced", well=well.address[-8:])
        self._wells[well.address] = well

    def get(self, address: str) -> Well | None:
        return self._wells.get(normalize_address(address))

    def addresses(self) -> list[str]:
        return sorted(self._wells)


_default_directory = WellDirectory()


def get_directory() -> WellDirectory:
    """Dependency provider for the Well directory.

    Override this in tests to serve specific Wells:
        app.dependency_overrides[get_directory] = lambda: directory
    """
    return _default_directory


def _lookup(directory: WellDirectory, well_id: str) -> Well:
    well = directory.get(well_id)
    if well is None or not well.initialized:
        raise HTTPException(status_code=404, detail=f"Unknown well: {well_id}")
    return well


@router.get("/wells")
def list_wells(directory: WellDirectory = Depends(get_directory)) -> list[str]:
    """Addresses of all served Wells."""
    return directory.addresses()


@router.get("/wells/{well_id}", response_model=WellInfo)
def get_well(well_id: str, directory: WellDirectory = Depends(get_directory)) -> WellInfo:
    """Config, reserves and LP supply of a Well."""
    well = _lookup(directory, well_id)
    config = well.config
    return WellInfo(
        address=well.address,
        tokens=list(config.tokens),
        pricing_function=config.pricing_function,
        pumps=list(config.pumps),
        reserves=list(well.get_reserves(config)),
        lp_supply=well.lp_token.total_supply(),
    )


@router.post("/wells/{well_id}/quote/swap-out", response_model=AmountResponse)
def quote_swap_out(
    well_id: str,
    request: SwapOutQuoteRequest,
    directory: WellDirectory = Depends(get_directory),
) -> AmountResponse:
    """Output amount for an exact input."""
    well = _lookup(directory, well_id)
    amount = well.get_swap_out(request.config, request.from_token, request.to_token, request.amount_in)
    return AmountResponse(amount=amount)


@router.post("/wells/{well_id}/quote/swap-in", response_model=AmountResponse)
def quote_swap_in(
    well_id: str,
    request: SwapInQuoteRequest,
    directory: WellDirectory = Depends(get_directory),
) -> AmountResponse:
    """Input amount required for an exact output."""
    well = _lookup(directory, well_id)
    amount = well.get_swap_in(request.config, request.from_token, request.to_token, request.amount_out)
    return AmountResponse(amount=amount)


@router.post("/wells/{well_id}/quote/add-liquidity", response_model=AmountResponse)
def quote_add_liquidity(
    well_id: str,
    request: AddLiquidityQuoteRequest,
    directory: WellDirectory = Depends(get_directory),
) -> AmountResponse:
    """LP minted for a deposit."""
    well = _lookup(directory, well_id)
    amount = well.get_add_liquidity_out(request.config, request.token_amounts_in)
    return AmountResponse(amount=amount)


@router.post("/wells/{well_id}/quote/remove-liquidity", response_model=AmountsResponse)
def quote_remove_liquidity(
    well_id: str,
    request: RemoveLiquidityQuoteRequest,
    directory: WellDirectory = Depends(get_directory),
) -> AmountsResponse:
    """Token amounts paid out for a balanced LP burn."""
    well = _lookup(directory, well_id)
    amounts = well.get_remove_liquidity_out(request.config, request.lp_amount_in)
    return AmountsResponse(amounts=list(amounts))


@router.post("/wells/{well_id}/quote/remove-liquidity-one-token", response_model=AmountResponse)
def quote_remove_liquidity_one_token(
    well_id: str,
    request: RemoveLiquidityOneTokenQuoteRequest,
    directory: WellDirectory = Depends(get_directory),
) -> AmountResponse:
    """Single-token amount paid out for an LP burn."""
    well = _lookup(directory, well_id)
    amount = well.get_remove_liquidity_one_token_out(
        request.config, request.lp_amount_in, request.token_out
    )
    return AmountResponse(amount=amount)


@router.post("/wells/{well_id}/quote/remove-liquidity-imbalanced", response_model=AmountResponse)
def quote_remove_liquidity_imbalanced(
    well_id: str,
    request: RemoveLiquidityImbalancedQuoteRequest,
    directory: WellDirectory = Depends(get_directory),
) -> AmountResponse:
    """LP that must be burned to withdraw exact token amounts."""
    well = _lookup(directory, well_id)
    amount = well.get_remove_liquidity_imbalanced_in(request.config, request.token_amounts_out)
    return AmountResponse(amount=amount)
