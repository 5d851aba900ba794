# RecipeKit API Main Entry Point
import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from .db import Base, get_engine
from .settings import settings
from .services.unit_conversion import UnitConversionError
from .routers.ready import router as ready_router
from .routers.units import router as units_router
from .routers.ingredients import router as ingredients_router
from .routers.recipes import router as recipes_router
from .routers.shopping import router as shopping_router
from .routers.suggestions import router as suggestions_router

# Configure structured logging
logging.basicConfig(
    level=settings.log_level,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[logging.StreamHandler(sys.stdout)]
)
logger = logging.getLogger("recipekit")


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.auto_create_tables:
        Base.metadata.create_all(bind=get_engine())
    yield


# Rate limiter (per-IP)
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.rate_limit_default],
    enabled=settings.rate_limit_enabled,
)

app = FastAPI(title="RecipeKit API", version="0.1.0", lifespan=lifespan)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


async def _unit_conversion_error_handler(request: Request, exc: UnitConversionError):
    # Deterministic input errors: surface verbatim, never retry
    logger.warning(f"{request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=400,
        content={"detail": str(exc), "error": type(exc).__name__},
    )


app.add_exception_handler(UnitConversionError, _unit_conversion_error_handler)

# Applies default_limits to every route
app.add_middleware(SlowAPIMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(ready_router, prefix="/api", tags=["ready"])
app.include_router(units_router, prefix="/api/units", tags=["units"])
app.include_router(ingredients_router, prefix="/api", tags=["ingredients"])
app.include_router(recipes_router, prefix="/api", tags=["recipes"])
app.include_router(shopping_router, prefix="/api", tags=["shopping"])
app.include_router(suggestions_router, prefix="/api", tags=["suggestions"])
