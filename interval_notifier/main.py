"""Application entrypoint."""
import sys
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from loguru import logger

from .api import router
from .config import Settings, settings
from .scheduler import (
    ApschedulerHost,
    AppStore,
    AuthState,
    GroupNotFoundError,
    InvalidNameError,
    NotAuthorizedError,
    NotificationServiceError,
    NotifierService,
    Reconciler,
    RuleNotFoundError,
    SchedulerAdapter,
    YamlBlobStore,
)


def build_service(config: Settings) -> tuple[NotifierService, ApschedulerHost]:
    """Wire store, host, adapter and reconciler from settings."""
    host = ApschedulerHost(
        initial_authorization=AuthState(config.notification_permission),
        grant_on_request=config.grant_on_request,
    )
    adapter = SchedulerAdapter(host)
    reconciler = Reconciler(adapter, debounce_seconds=config.reconcile_debounce_seconds)
    store = AppStore(YamlBlobStore(config.store_path))
    return NotifierService(store, adapter, reconciler), host


def create_app(service: NotifierService, host: ApschedulerHost | None = None) -> FastAPI:
    """Create the FastAPI app around an already-built service.

    On startup the host is started and a forced reconcile pass repairs
    whatever drift accumulated while the process was not running.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if host is not None:
            host.start()
        result = await service.reconcile(force=True)
        logger.info(f"Startup reconcile: {result.to_dict()}")
        yield
        if host is not None:
            host.shutdown()

    app = FastAPI(title="Interval Notifier", lifespan=lifespan)
    app.state.service = service
    app.include_router(router)

    @app.exception_handler(NotificationServiceError)
    async def notification_error(request: Request, exc: NotificationServiceError):
        status_code = 403 if isinstance(exc, NotAuthorizedError) else 422
        return JSONResponse(exc.to_dict(), status_code=status_code)

    @app.exception_handler(GroupNotFoundError)
    @app.exception_handler(RuleNotFoundError)
    async def not_found(request: Request, exc: LookupError):
        return JSONResponse(
            {"error": "not_found", "message": str(exc), "open_settings": False},
            status_code=404,
        )

    @app.exception_handler(InvalidNameError)
    async def invalid_name(request: Request, exc: InvalidNameError):
        return JSONResponse(
            {"error": "invalid_name", "message": str(exc), "open_settings": False},
            status_code=422,
        )

    return app


def main() -> None:
    """Run the HTTP service."""
    logger.remove()
    logger.add(sys.stderr, level=settings.log_level)

    service, host = build_service(settings)
    app = create_app(service, host)
    logger.info(f"Serving on {settings.host}:{settings.port}, data in {settings.store_path}")
    uvicorn.run(app, host=settings.host, port=settings.port, log_level="debug" if settings.debug else "info")


if __name__ == "__main__":
    main()
