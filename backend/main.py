import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

# Import models first so SQLAlchemy metadata knows every table
from .src.models import db as models_db
from .src.models.db import Base
from .src.models_quote import QuoteOfferRecord  # noqa: F401
from .src.config import ALLOWED_ORIGINS, LOG_LEVEL, QUOTE_NUMBER_INIT_STRICT
from .src.services.errors import QuoteOfferNotFoundError, QuoteOfferStateError
from .src.services.quote_numbers import QuoteNumberSequence
from .src.services.quote_offer_repository import QuoteOfferRepository

# Import routers after models
from .src.api.draft_quotes import router as draft_quotes_router
from .src.api.quotes import router as quotes_router
from .src.api.quote_offers import router as quote_offers_router

# Configure logging
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # SessionLocal is looked up at startup so tests can swap the engine
    db = models_db.SessionLocal()
    try:
        Base.metadata.create_all(bind=db.get_bind())
        app.state.quote_numbers = QuoteNumberSequence.from_store(
            lambda: QuoteOfferRepository.read_max_number(db),
            strict=QUOTE_NUMBER_INIT_STRICT,
        )
    finally:
        db.close()
    yield


app = FastAPI(title="Quote Offer API", lifespan=lifespan)

# CORS middleware must be added before routes
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["*"],
)

def make_cors_response(request: Request, status_code: int, content: dict):
    """Helper function to create JSONResponse with CORS headers."""
    return JSONResponse(
        status_code=status_code,
        content=content,
        headers={
            "Access-Control-Allow-Origin": request.headers.get("origin", ALLOWED_ORIGINS[0] if ALLOWED_ORIGINS else "*"),
            "Access-Control-Allow-Credentials": "true",
        }
    )

# Exception handlers to ensure CORS headers are always present
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle Pydantic validation errors (422) with CORS headers."""
    logger.warning(f"Validation error on {request.method} {request.url.path}: {exc.errors()}")
    return make_cors_response(
        request,
        422,
        {"detail": exc.errors(), "body": exc.body}
    )

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return make_cors_response(
        request,
        exc.status_code,
        {"detail": exc.detail}
    )

@app.exception_handler(QuoteOfferNotFoundError)
async def not_found_handler(request: Request, exc: QuoteOfferNotFoundError):
    logger.warning(f"{request.method} {request.url.path}: {exc}")
    return make_cors_response(request, 404, {"detail": str(exc)})

@app.exception_handler(QuoteOfferStateError)
async def state_error_handler(request: Request, exc: QuoteOfferStateError):
    logger.warning(f"{request.method} {request.url.path}: {exc}")
    return make_cors_response(request, 400, {"detail": str(exc)})

@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.method} {request.url.path}: {exc}", exc_info=True)
    return make_cors_response(
        request,
        500,
        {"detail": "Internal server error"}
    )

@app.get("/health")
def health():
    return {"ok": True, "origins": ALLOWED_ORIGINS}

app.include_router(draft_quotes_router)
app.include_router(quotes_router)
app.include_router(quote_offers_router)
