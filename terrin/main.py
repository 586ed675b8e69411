from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from terrin.api.middleware import AuditMiddleware
from terrin.api.routes.router import api_router
from terrin.common.exceptions import TerrinException
from terrin.common.logging import get_logger, setup_logging
from terrin.config import settings
from terrin.integrations import AIClient, StorageClient, StripeClient

logger = get_logger("app")

# Ensure local storage directory exists before StaticFiles checks it
Path(settings.STORAGE_LOCAL_PATH).mkdir(parents=True, exist_ok=True)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger.info("Terrin API starting (env=%s)", settings.APP_ENV)
    yield


app = FastAPI(
    title="Terrin API",
    description="Construction marketplace connecting homeowners and professionals",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS
origins = settings.ALLOWED_ORIGINS.split(",") if settings.ALLOWED_ORIGINS != "*" else ["*"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=origins != ["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(AuditMiddleware)


@app.exception_handler(TerrinException)
async def terrin_exception_handler(request: Request, exc: TerrinException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail, **exc.extra},
        headers=exc.headers,
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        {
            "field": ".".join(str(p) for p in err.get("loc", ()) if p != "body"),
            "message": err.get("msg", ""),
        }
        for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"message": "Invalid request data", "errors": errors})


# Uploaded files (photos, documents, message attachments)
app.mount(
    settings.STORAGE_PUBLIC_URL,
    StaticFiles(directory=settings.STORAGE_LOCAL_PATH),
    name="uploads",
)

# API routes
app.include_router(api_router, prefix="/api")


@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "service": "terrin",
        "version": "1.0.0",
        "env": settings.APP_ENV,
    }


@app.get("/health/integrations")
async def integrations_health():
    clients = (AIClient(), StripeClient(), StorageClient())
    return {client.name: await client.health_check() for client in clients}
