import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pybreaker import CircuitBreakerError

from blade_api.common.pagination import InvalidFilterValueError, PaginationError
from blade_api.common.redis_service import get_redis_service
from blade_api.common.responses import (
    CODE_INTERNAL_ERROR,
    CODE_INVALID_REQUEST,
    CODE_SERVICE_UNAVAILABLE,
    CODE_VALIDATION_ERROR,
    ApiException,
    ErrorResponse,
)
from blade_api.configuration.config import settings
from blade_api.modules.auth.controller import me_router
from blade_api.modules.auth.controller import router as auth_router
from blade_api.modules.users.controller import router as users_router

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

# Metadata configuration for OpenAPI/Swagger
description = """
## Blade API

REST API for user management.

### Features

* **Authentication** with JWT access and refresh tokens in httpOnly cookies
* **User management**: create, list, obtain, update, soft delete and delete users
* **Pagination** with search, filters, date ranges and sorting on lists
* **Data validation** with Pydantic
* **Interactive documentation** with Swagger UI
"""

tags_metadata = [
    {
        "name": "auth",
        "description": "Authentication endpoints. Register, login, logout and get current user info.",
    },
    {
        "name": "users",
        "description": "Operations to manage users. Requires authentication.",
    },
    {
        "name": "health",
        "description": "Health endpoints to verify that the service is working.",
    },
]

logger = logging.getLogger("uvicorn.error")


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings.check_runtime()

    docs_path = app.docs_url or "/docs"
    swagger_url = f"http://{settings.HOST}:{settings.PORT}{docs_path}"
    logger.info("Swagger UI available at %s", swagger_url)
    yield
    get_redis_service().close()


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description=description,
    debug=settings.DEBUG,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    openapi_tags=tags_metadata,
    license_info={
        "name": "MIT",
    },
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error(status_code: int, body: ErrorResponse, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True), headers=headers)


@app.exception_handler(ApiException)
async def api_exception_handler(request: Request, exc: ApiException):
    return _error(exc.status_code, exc.to_response(), exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    if any(error["type"] == "json_invalid" for error in exc.errors()):
        return _error(
            status.HTTP_400_BAD_REQUEST,
            ErrorResponse(message="Invalid request body", code=CODE_INVALID_REQUEST),
        )
    return _error(
        status.HTTP_400_BAD_REQUEST,
        ErrorResponse(
            message="Validation failed",
            code=CODE_VALIDATION_ERROR,
            details=jsonable_encoder(exc.errors()),
        ),
    )


@app.exception_handler(InvalidFilterValueError)
async def invalid_filter_handler(request: Request, exc: InvalidFilterValueError):
    return _error(
        status.HTTP_400_BAD_REQUEST,
        ErrorResponse(
            message=str(exc),
            code=CODE_VALIDATION_ERROR,
            details={"field": exc.name},
        ),
    )


@app.exception_handler(PaginationError)
async def pagination_error_handler(request: Request, exc: PaginationError):
    logger.error(f"Pagination failed on {request.url.path}: {exc}", exc_info=exc)
    return _error(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        ErrorResponse(message="Failed to fetch data", code=CODE_INTERNAL_ERROR),
    )


@app.exception_handler(CircuitBreakerError)
async def circuit_breaker_handler(request: Request, exc: CircuitBreakerError):
    logger.warning(f"Database circuit open, rejecting {request.url.path}")
    return _error(
        status.HTTP_503_SERVICE_UNAVAILABLE,
        ErrorResponse(message="Service temporarily unavailable", code=CODE_SERVICE_UNAVAILABLE),
    )


# Register routers of modules
app.include_router(auth_router, prefix="/api")
app.include_router(me_router, prefix="/api")
app.include_router(users_router, prefix="/api")


@app.get("/", tags=["health"])
def root():
    """Health endpoint to verify that the service is working."""
    return {"message": f"{settings.APP_NAME} is running", "version": settings.APP_VERSION}


@app.get("/health", tags=["health"])
def health_check():
    """Health endpoint to verify that the service is working."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "blade_api.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level="info" if not settings.DEBUG else "debug",
    )
