"""FastAPI application factory for the ordering service."""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from protean.domain import Domain
from protean.exceptions import ValidationError

from ordering.api.responses import envelope, error_response
from ordering.api.routes import order_router, payment_router
from ordering.errors import ErrorKind, OrderingError
from ordering.services import OrderingServices
from ordering.utils.logging import add_context, clear_context

logger = structlog.get_logger(__name__)


def _validation_message(errors) -> str:
    parts = []
    for error in errors:
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        parts.append(f"{location}: {error.get('msg')}" if location else error.get("msg", ""))
    return "; ".join(parts) or "Invalid request"


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(OrderingError)
    async def ordering_error_handler(request: Request, exc: OrderingError):
        return error_response(exc.kind, exc.message)

    @app.exception_handler(ValidationError)
    async def domain_validation_handler(request: Request, exc: ValidationError):
        return error_response(ErrorKind.VALIDATION, str(exc.messages))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return error_response(ErrorKind.VALIDATION, _validation_message(exc.errors()))

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception("unhandled_error", method=request.method, path=request.url.path)
        return JSONResponse(
            status_code=500,
            content=envelope(message="Internal server error", success=False),
        )


def create_app(domain: Domain, services: OrderingServices, cors_origins=("*",)) -> FastAPI:
    app = FastAPI(
        title="Ordering Service API",
        description="Carts, order lifecycle and payment registration",
    )
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def domain_context_middleware(request: Request, call_next):
        """Push the ordering domain context and request log context for each request."""
        clear_context()
        add_context(method=request.method, path=request.url.path, user_id=request.headers.get("X-User-Id"))
        with domain.domain_context():
            return await call_next(request)

    register_error_handlers(app)
    app.include_router(order_router)
    app.include_router(payment_router)

    @app.get("/health")
    async def health():
        return JSONResponse(content={"status": "ok", "domain": domain.name})

    return app
