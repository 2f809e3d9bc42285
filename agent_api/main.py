"""FastAPI app entry point for the agent price list and booking API."""

import asyncio
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from agent_api.api import booking_routes, product_routes
from agent_api.api.deps import close_clients, get_price_list
from agent_api.api.security_headers import SecurityHeadersMiddleware
from agent_api.core.config import get_settings, validate_settings
from agent_api.core.logging import (
    elapsed_ms,
    log_error,
    log_request,
    log_response,
    logger,
    setup_logging,
)
from agent_api.services.price_list import PriceListError
from agent_api.services.sheets import BookingStoreError

VERSION = "1.0.0"

ENDPOINTS = {
    "GET /api/health": "Estado del servicio y numero de productos cargados",
    "POST /api/product/search": "Busca productos por codigo o nombre",
    "GET /api/product/code/{code}": "Obtiene un producto por su codigo",
    "POST /api/tires/search": "Busca llantas por medida (ancho, perfil, rin)",
    "GET /api/tires/parse": "Extrae la medida de llanta de un nombre de producto",
    "POST /api/price-list/reload": "Recarga la lista de precios desde el archivo",
    "POST /api/citas/agendar": "Crea una nueva cita, verificando disponibilidad",
    "GET /api/citas/disponibilidad": "Lista horarios libres de un dia",
}

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: validate config, load the price list."""
    setup_logging(settings.log_level)
    try:
        validate_settings(settings)
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        raise

    logger.info("Starting agent API...")
    price_list = get_price_list(settings)
    try:
        await asyncio.to_thread(price_list.reload)
    except PriceListError as e:
        # Bookings still work without products; /api/price-list/reload can retry
        log_error("Price list not loaded at startup", e)
    if not settings.sheets_configured:
        logger.warning("SHEET_ID_CITAS / GOOGLE_* not set - booking endpoints will return 503")

    yield

    await close_clients()
    logger.info("Shutting down...")


app = FastAPI(
    title="Agent Price List & Booking API",
    description="Product, tire size and appointment endpoints for agent callers",
    version=VERSION,
    lifespan=lifespan,
)

# Rate limiting (per client IP)
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.rate_limit],
    enabled=settings.rate_limit_enabled,
)
app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)

app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    log_request(request.method, request.url.path)

    response = await call_next(request)

    log_response(request.method, request.url.path, response.status_code, elapsed_ms(start))
    return response


# ---------------------------------------------------------------------------
# Error handlers
# ---------------------------------------------------------------------------


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    log_error("Rate limit exceeded", client=get_remote_address(request))
    return JSONResponse(
        status_code=429,
        content={
            "success": False,
            "error": "Demasiadas solicitudes desde esta IP, por favor intente mas tarde.",
        },
    )


@app.exception_handler(BookingStoreError)
async def booking_store_handler(request: Request, exc: BookingStoreError):
    log_error("Booking store unavailable", exc, path=request.url.path)
    return JSONResponse(
        status_code=503,
        content={
            "estado": "error_servidor",
            "mensaje": "El almacenamiento de citas no esta disponible. Intente mas tarde.",
        },
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Booking callers get the 400 {estado, mensaje} body; other routes keep the 422."""
    if not request.url.path.startswith("/api/citas/"):
        return await request_validation_exception_handler(request, exc)
    fields = sorted({str(err["loc"][-1]) for err in exc.errors() if err.get("loc")})
    return JSONResponse(
        status_code=400,
        content={
            "estado": "error",
            "mensaje": f"Datos invalidos en: {', '.join(fields)}.",
        },
    )


@app.exception_handler(404)
async def not_found_handler(request: Request, exc: Exception):
    return JSONResponse(
        status_code=404,
        content={
            "success": False,
            "error": "Endpoint no encontrado",
            "availableEndpoints": list(ENDPOINTS),
        },
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    log_error("Unhandled error", exc, path=request.url.path)
    return JSONResponse(
        status_code=500, content={"success": False, "error": "Internal server error"}
    )


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

app.include_router(product_routes.router, prefix="/api")
app.include_router(booking_routes.router, prefix="/api/citas")


@app.get("/")
async def index():
    return {
        "message": "API de lista de precios y agendamiento de citas",
        "version": VERSION,
        "endpoints": ENDPOINTS,
    }
