"""FastAPI application serving Well quotes.

Note: authentication and rate limiting are not implemented at the application
level; they belong to the reverse proxy in front of it.
"""

import structlog
import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from well.api.endpoints import router
from well.api.schemas import ErrorResponse
from well.config import WellSettings
from well.errors import WellError
from well.logging_config import configure_logging

logger = structlog.get_logger()

SETTINGS = WellSettings.from_env()

app = FastAPI(
    title="Well quote API",
    description="Swap and liquidity quotes for constant-function liquidity pools",
    version="0.1.0",
)


@app.exception_handler(WellError)
async def well_error_handler(request: Request, exc: WellError) -> JSONResponse:
    """Map domain errors (bad config, bad indices, undefined math) to 400."""
    logger.info(
        "quote_rejected",
        path=request.url.path,
        error=type(exc).__name__,
        detail=str(exc),
    )
    return JSONResponse(
        status_code=400,
        content=ErrorResponse(error=type(exc).__name__, detail=str(exc)).model_dump(),
    )


app.include_router(router)


@app.get("/health")
async def health() -> dict[str, object]:
    """Health check endpoint."""
    return {"status": "ok"}


def run() -> None:
    """Run the quote API server.

    Configuration via environment variables (see WellSettings.from_env):
    - WELL_API_HOST: Host to bind to (default: 0.0.0.0)
    - WELL_API_PORT: Port to bind to (default: 8000)
    - WELL_API_DEBUG: Enable reload mode (default: false)
    - WELL_LOG_LEVEL: Log level (default: INFO)
    """
    configure_logging(SETTINGS.log_level)
    uvicorn.run(
        "well.api.main:app",
        host=SETTINGS.api_host,
        port=SETTINGS.api_port,
        reload=SETTINGS.api_debug,
    )


if __name__ == "__main__":
    run()
