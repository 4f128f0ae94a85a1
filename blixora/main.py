"""
Blixora Labs API - Main Application
Simulations catalogue and the enrollment lifecycle
"""

import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from blixora import config, database
from blixora.enrollments.enrollment_router import router as enrollment_router
from blixora.enrollments.errors import LifecycleError
from blixora.simulations.simulation_router import router as simulation_router
from blixora.system.health_router import router as health_router

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Blixora Labs API", version=config.VERSION)


@app.on_event("startup")
async def startup_event():
    client, db = database.connect()
    app.state.mongo_client = client
    app.state.db = db
    await database.create_indexes(db)
    logger.info("Blixora Labs API started")


@app.on_event("shutdown")
async def shutdown_event():
    database.close(getattr(app.state, "mongo_client", None))
    app.state.db = None


app.add_middleware(
    CORSMiddleware,
    allow_origins=[config.FRONTEND_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"]
)


# ==================== ERROR HANDLERS ====================

@app.exception_handler(LifecycleError)
async def lifecycle_error_handler(request: Request, exc: LifecycleError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": exc.message, "error": exc.code}
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": exc.detail, "error": "http_error"},
        headers=getattr(exc, "headers", None)
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = f"{field}: {first.get('msg', 'Invalid request')}" if field else first.get("msg", "Invalid request")
    return JSONResponse(
        status_code=422,
        content={
            "success": False,
            "message": message,
            "error": "validation_error",
            "details": jsonable_encoder(errors)
        }
    )


# ==================== ROUTER REGISTRATION ====================
app.include_router(health_router, prefix="/api")
app.include_router(simulation_router, prefix="/api")
app.include_router(enrollment_router, prefix="/api")


@app.get("/")
async def root():
    return {
        "message": "Welcome to Blixora Labs API",
        "version": config.VERSION,
        "endpoints": {
            "health": "/api/health",
            "simulations": "/api/simulations",
            "enrollments": "/api/enrollments"
        }
    }
