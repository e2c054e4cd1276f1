from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
import logging
import os
import time
from datetime import datetime

from noteshare.config.settings import (
    API_TITLE, API_VERSION, API_DESCRIPTION, CORS_ORIGINS, IS_PRODUCTION, UPLOAD_DIR,
)
from noteshare.config.database import init_db
from noteshare.core.errors import NoteShareError
from noteshare.routers import ai, auth, catalog, health, leaderboard, notes
from noteshare.utils.file_utils import ensure_dir

logger = logging.getLogger(__name__)

app = FastAPI(
    title=API_TITLE,
    version=API_VERSION,
    description=API_DESCRIPTION,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=CORS_ORIGINS != ["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


# Add request timing middleware
@app.middleware("http")
async def add_timing_middleware(request: Request, call_next):
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)
    return response


@app.exception_handler(NoteShareError)
async def noteshare_error_handler(request: Request, exc: NoteShareError):
    """Domain errors carry their own status code"""
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
    else:
        logger.info(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message}, headers=headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed requests are reported as 400 with the first problem spelled out"""
    errors = exc.errors()
    logger.warning(f"Validation error on {request.url.path}: {errors}")

    details = [
        {"loc": list(error.get("loc", [])), "msg": error.get("msg"), "type": error.get("type")}
        for error in errors
    ]
    if details:
        first = details[0]
        field = ".".join(str(part) for part in first["loc"] if part not in ("body", "query", "path"))
        message = f"{field}: {first['msg']}" if field else first["msg"]
    else:
        message = "Invalid request"
    return JSONResponse(status_code=400, content={"error": message, "details": details})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    error_id = f"ERR-{int(datetime.now().timestamp())}-{os.urandom(4).hex()}"
    logger.exception(f"[{error_id}] Unhandled exception on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "error_id": error_id,
            "detail": "Internal server error" if IS_PRODUCTION else str(exc),
        },
    )


for module in (auth, notes, leaderboard, ai, catalog, health):
    app.include_router(module.router)

# Uploaded files are also reachable by their generated name
app.mount("/uploads", StaticFiles(directory=UPLOAD_DIR, check_dir=False), name="uploads")


@app.get("/health")
async def health():
    """Simple health check"""
    return {"status": "healthy", "timestamp": datetime.now().isoformat()}


@app.on_event("startup")
async def startup_event():
    """Initialize application on startup"""
    ensure_dir(UPLOAD_DIR)
    init_db()
    logger.info(f"Application started successfully at {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info(f"Application shutting down at {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")


def run():
    """Console entry point: serve the API with uvicorn"""
    import uvicorn

    uvicorn.run(
        "noteshare.main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "3000")),
        reload=not IS_PRODUCTION,
    )


if __name__ == "__main__":
    run()
