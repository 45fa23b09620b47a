import time
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from carwash.api import bookings
from carwash.core.config import settings
from carwash.core.errors import register_error_handlers
from carwash.core.logger import logger, setup_logging

setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info(f"🚀 Starting {settings.PROJECT_NAME} ({settings.ENVIRONMENT})")
    store = bookings.get_store()
    logger.info(f"📦 Booking store: {type(store).__name__}")
    yield
    # Shutdown
    logger.info("🛑 Shutting down backend")


app = FastAPI(
    title=settings.PROJECT_NAME,
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.info(f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.1f} ms)")
    return response


health_router = APIRouter()


@health_router.get("/health")
async def health_check():
    return {
        "success": True,
        "status": "OK",
        "environment": settings.ENVIRONMENT,
        "timestamp": datetime.now().isoformat(),
    }


# Include routers
app.include_router(bookings.router, prefix=settings.API_V1_STR, tags=["Bookings"])
app.include_router(health_router, prefix=settings.API_V1_STR, tags=["Health"])
app.include_router(health_router, tags=["Health"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("carwash.main:app", host="0.0.0.0", port=settings.PORT, reload=settings.ENVIRONMENT == "development")
