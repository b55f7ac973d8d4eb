# vegbazar/main.py
from contextlib import asynccontextmanager
import logging

from fastapi.middleware.cors import CORSMiddleware
from fastapi import FastAPI

from vegbazar.core.config import get_settings
from vegbazar.core.errors import register_exception_handlers
from vegbazar.database import create_db_and_tables

# Import models so SQLModel metadata is populated before create_all()
from vegbazar.models import user as _user_models  # noqa: F401
from vegbazar.models import city as _city_models  # noqa: F401
from vegbazar.models import testimonial as _testimonial_models  # noqa: F401
from vegbazar.models import vegetable as _vegetable_models  # noqa: F401
from vegbazar.models import offer as _offer_models  # noqa: F401
from vegbazar.models import coupon as _coupon_models  # noqa: F401
from vegbazar.models import address as _address_models  # noqa: F401

# Routers
from vegbazar.routers.auth import router as auth_router
from vegbazar.routers.users import router as users_router
from vegbazar.routers.cities import router as cities_router
from vegbazar.routers.testimonials import router as testimonials_router
from vegbazar.routers.vegetables import router as vegetables_router
from vegbazar.routers.offers import router as offers_router
from vegbazar.routers.coupons import router as coupons_router
from vegbazar.routers.addresses import router as addresses_router

settings = get_settings()

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger("uvicorn")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup:
      - Verify DB connectivity and create tables.

    Shutdown:
      - No special cleanup needed for sync engine.
    """
    logger.info("Startup: connecting to database (%s)...", settings.ENVIRONMENT)
    try:
        create_db_and_tables()
        logger.info("Startup: DB connection OK, tables verified.")
    except Exception as e:
        logger.error("Startup: DB connection FAILED: %s", e)
        raise
    yield


app = FastAPI(
    title=settings.PROJECT_NAME,
    version="0.1.0",
    lifespan=lifespan,
)

# --- CORS configuration ---
# Credentials (cookies) are allowed, so origins must be listed explicitly.
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Versioned API prefix, e.g. /api/v1
app.include_router(auth_router, prefix=settings.API_V1_STR)
app.include_router(users_router, prefix=settings.API_V1_STR)
app.include_router(cities_router, prefix=settings.API_V1_STR)
app.include_router(testimonials_router, prefix=settings.API_V1_STR)
app.include_router(vegetables_router, prefix=settings.API_V1_STR)
app.include_router(offers_router, prefix=settings.API_V1_STR)
app.include_router(coupons_router, prefix=settings.API_V1_STR)
app.include_router(addresses_router, prefix=settings.API_V1_STR)


@app.get("/")
def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "vegbazar-backend"}
