import logging
import traceback
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from customer_registry.api import addresses, customers
from customer_registry.config import settings
from customer_registry.database import Store
from customer_registry.errors import RegistryError

logger = logging.getLogger(__name__)


def _validation_message(error: dict) -> str:
    ctx_error = (error.get("ctx") or {}).get("error")
    if isinstance(ctx_error, Exception):
        return str(ctx_error)
    field = ".".join(str(part) for part in error.get("loc", ())[1:])
    return f"{field}: {error.get('msg', 'invalid value')}" if field else error.get("msg", "Invalid request")


def create_app(store: Store | None = None) -> FastAPI:
    """Build the API around one Store; the lifespan opens and closes it."""
    logging.basicConfig(level=settings.LOG_LEVEL)
    if store is None:
        store = Store(settings.DATABASE_URL, echo=settings.SQL_ECHO)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        store.connect()
        try:
            store.initialize()
            yield
        finally:
            store.close()

    app = FastAPI(
        title=settings.APP_NAME,
        description="Customers and their addresses, with search, filtering and pagination",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.store = store

    @app.exception_handler(RegistryError)
    async def registry_error_handler(request: Request, exc: RegistryError):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = [
            {"field": ".".join(str(part) for part in e.get("loc", ())[1:]), "message": _validation_message(e)}
            for e in exc.errors()
        ]
        detail = errors[0]["message"] if errors else "Invalid request"
        return JSONResponse(status_code=400, content={"detail": detail, "errors": errors})

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Return JSON for unhandled exceptions without leaking internals."""
        logger.error("Unhandled error: %s\n%s", exc, traceback.format_exc())
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    app.include_router(customers.router, prefix=settings.API_PREFIX)
    app.include_router(addresses.router, prefix=settings.API_PREFIX)

    @app.get("/health")
    def health():
        return {
            "status": "OK",
            "message": "Server is running",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("customer_registry.main:app", host="0.0.0.0", port=8000)
