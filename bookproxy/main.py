"""
Main application entry point.
"""
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from bookproxy import __version__
from bookproxy.agents.amazon_agent import AmazonAgent
from bookproxy.agents.rakuten_agent import RakutenSearchAgent
from bookproxy.config import Config, config as default_config
from bookproxy.errors import ExternalServiceError, ProxyError, RequestValidationError
from bookproxy.health import router as health_router
from bookproxy.logger import logger
from bookproxy.models.book import DEFAULT_MAX_RESULTS, MAX_ITEM_COUNT, SearchRequest
from bookproxy.sentry import initialize_sentry
from bookproxy.services.paapi_service import PaapiService
from bookproxy.services.rakuten_service import RakutenService

PAAPI_PATH = "/amazon-paapi"
RAKUTEN_PATH = "/rakuten-books"

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}


def paapi_error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"message": message}, status_code=status_code)


def rakuten_error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(
        {"error": message},
        status_code=status_code,
        headers={"Access-Control-Allow-Origin": "*"}
    )


async def read_json(request: Request):
    try:
        return await request.json()
    except ValueError as e:
        raise RequestValidationError("Invalid JSON body", detail=str(e)) from e


def get_config(request: Request) -> Config:
    return request.app.state.config


def get_paapi_service(request: Request) -> PaapiService:
    return request.app.state.paapi_service


def get_rakuten_service(request: Request) -> RakutenService:
    return request.app.state.rakuten_service


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle."""
    # Startup
    logger.info("Starting Book Search Proxy")
    initialize_sentry(app.state.config)
    await app.state.paapi_service.initialize()
    await app.state.rakuten_service.initialize()
    app.state.ready = True

    yield

    # Shutdown
    logger.info("Shutting down Book Search Proxy")
    app.state.ready = False
    await app.state.paapi_service.close()
    await app.state.rakuten_service.close()


async def search_amazon(
    request: Request,
    cfg: Config = Depends(get_config),
    service: PaapiService = Depends(get_paapi_service),
):
    """Search Amazon PA-API (signed pipeline)."""
    if not cfg.has_paapi_credentials:
        logger.error("PA-API credentials are not configured")
        return paapi_error("Missing Amazon PA-API credentials", 500)

    try:
        payload = await read_json(request)
        search_request = SearchRequest.from_payload(
            payload,
            hits_field="maxResults",
            default_hits=DEFAULT_MAX_RESULTS,
            max_hits=MAX_ITEM_COUNT,
        )
        outcome = await AmazonAgent(service).search_products(search_request)
        return outcome.to_dict()

    except RequestValidationError as e:
        logger.warning(f"Rejected PA-API request: {e.message}", extra={"context": {"detail": e.detail}})
        return paapi_error(e.message, e.status_code)

    except ExternalServiceError as e:
        logger.error(f"PA-API upstream error: {e.message}", extra={"context": {"detail": e.detail}})
        return paapi_error(e.message, e.status_code)

    except ProxyError as e:
        logger.error(f"PA-API proxy error: {e.message}")
        return paapi_error(e.message, e.status_code)

    except Exception as e:
        logger.error(f"Amazon PA-API proxy error: {e}", exc_info=True)
        return paapi_error("Failed to complete Amazon PA-API request", 500)


async def search_rakuten(
    request: Request,
    cfg: Config = Depends(get_config),
    service: RakutenService = Depends(get_rakuten_service),
):
    """Search Rakuten Books with ISBN / author / keyword / title fallback."""
    if not cfg.has_rakuten_credentials:
        logger.error("Rakuten application id is not configured")
        return rakuten_error("Missing Rakuten API credentials", 500)

    try:
        payload = await read_json(request)
        search_request = SearchRequest.from_payload(payload)
        outcome = await RakutenSearchAgent(service.search_books).search_products(search_request)
        return JSONResponse(outcome.to_dict(), headers={"Access-Control-Allow-Origin": "*"})

    except RequestValidationError as e:
        logger.warning(f"Rejected Rakuten request: {e.message}", extra={"context": {"detail": e.detail}})
        return rakuten_error(e.message, e.status_code)

    except ExternalServiceError as e:
        logger.error(f"Rakuten upstream error: {e.message}", extra={"context": {"detail": e.detail}})
        return rakuten_error("Failed to fetch from Rakuten Books API", e.status_code)

    except ProxyError as e:
        logger.error(f"Rakuten proxy error: {e.message}")
        return rakuten_error(e.message, e.status_code)

    except Exception as e:
        logger.error(f"Rakuten proxy error: {e}", exc_info=True)
        return rakuten_error("Failed to fetch from Rakuten Books API", 500)


async def rakuten_preflight():
    return Response(status_code=204, headers=CORS_HEADERS)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Render routing errors (405, 404) in the shape each endpoint uses."""
    if request.url.path == PAAPI_PATH:
        return paapi_error(str(exc.detail), exc.status_code)
    if request.url.path == RAKUTEN_PATH:
        return rakuten_error(str(exc.detail), exc.status_code)
    return JSONResponse({"error": str(exc.detail)}, status_code=exc.status_code)


def create_app(cfg: Optional[Config] = None,
               paapi_service: Optional[PaapiService] = None,
               rakuten_service: Optional[RakutenService] = None) -> FastAPI:
    """Build the application around an injected configuration."""
    cfg = cfg or default_config

    app = FastAPI(
        title="Book Search Proxy",
        description="Normalized book search over Amazon PA-API and Rakuten Books",
        version=__version__,
        lifespan=lifespan
    )
    app.state.config = cfg
    app.state.paapi_service = paapi_service or PaapiService(cfg)
    app.state.rakuten_service = rakuten_service or RakutenService(cfg)
    app.state.ready = False

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "service": "Book Search Proxy",
            "version": __version__,
            "status": "operational",
            "timestamp": datetime.now(timezone.utc).isoformat()
        }

    app.include_router(health_router)
    app.add_api_route(PAAPI_PATH, search_amazon, methods=["POST"])
    app.add_api_route(RAKUTEN_PATH, search_rakuten, methods=["POST"])
    app.add_api_route(RAKUTEN_PATH, rakuten_preflight, methods=["OPTIONS"])
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)

    return app


app = create_app()


if __name__ == "__main__":
    import os
    import uvicorn
    port = int(os.environ.get("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
