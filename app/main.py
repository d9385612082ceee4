from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from contextlib import asynccontextmanager
from app.configs.app_settings import settings
from app.configs.stripe_config import create_stripe_client, close_stripe_client
from app.custom_error import CheckoutApiError
from app.routes.checkout_session_routes import checkout_session_router
from app.routes.payments_routes import payments_router
from app.routes.pricing_routes import pricing_router
from app.routes.stripe_webhook_route import stripe_webhook_router
import logging

logging.basicConfig(level=settings.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # before yield = startup
    create_stripe_client()

    yield
    # after yield = shutdown
    await close_stripe_client()
    logger.info("✅ Stripe client closed")


app = FastAPI(title="Landing Checkout API", version="1.0.0", lifespan=lifespan)


# Every CheckoutApiError renders as {"error": CODE, "message": ...}
@app.exception_handler(CheckoutApiError)
async def checkout_api_exception_handler(request: Request, exc: CheckoutApiError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.error_code, "message": exc.detail})


@app.exception_handler(RequestValidationError)
async def custom_request_validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle validation errors raised by FastAPI for typed bodies, query and path params"""
    return JSONResponse(status_code=400, content={"error": "INVALID_REQUEST", "message": "Validation error", "errors": jsonable_errors(exc)})


def jsonable_errors(exc: RequestValidationError):
    return [{"loc": list(error.get("loc", [])), "msg": error.get("msg"), "type": error.get("type")} for error in exc.errors()]


# CORS headers go on every response that passes through here, including the preflight OPTIONS answer
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "Idempotency-Key"],
)


# Include routers
app.include_router(checkout_session_router, prefix=settings.API_PREFIX)
app.include_router(payments_router, prefix=settings.API_PREFIX)
app.include_router(pricing_router, prefix=settings.API_PREFIX)
app.include_router(stripe_webhook_router, prefix=settings.API_PREFIX)


@app.get("/")
async def root():
    return {"message": "Welcome to Landing Checkout API"}


@app.get("/health")
async def health():
    return {"status": "ok"}
