import logging
import os
import time

import structlog
from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from pymongo.database import Database

from config import get_settings
from database import close_db, get_db, init_db
from errors import register_exception_handlers
from payments import init_gateway
from routers import adoptions, donations, pets, users

settings = get_settings()

logging.basicConfig(format="%(message)s", level=logging.DEBUG if settings.debug else logging.INFO)

structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger(__name__)

app = FastAPI(title=settings.app_name, debug=settings.debug)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()
    logger.info("Request started", method=request.method, path=request.url.path)
    response = await call_next(request)
    logger.info(
        "Request completed",
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        latency_seconds=round(time.time() - start_time, 3),
    )
    return response


@app.on_event("startup")
def startup_event():
    logger.info("Starting Pet Adoption API")
    init_db()
    init_gateway()


@app.on_event("shutdown")
def shutdown_event():
    close_db()


# -------------------------
# Basic
# -------------------------
@app.get("/")
def root():
    return {"message": "Pet adoption server is running"}


@app.get("/test")
def test_database(db: Database = Depends(get_db)):
    response = {"backend": "running", "database": "not available"}
    try:
        response["collections"] = db.list_collection_names()
        response["database"] = "connected"
    except Exception as e:
        logger.warning("Database check failed", error=str(e))
        response["database"] = f"error: {str(e)[:80]}"
    return response


app.include_router(users.router)
app.include_router(pets.router)
app.include_router(adoptions.router)
app.include_router(donations.router)


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
