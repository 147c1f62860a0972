"""FastAPI application server."""

from pathlib import Path
from typing import Any, Optional

from fastapi import FastAPI  # type: ignore[import-untyped]
from fastapi.responses import JSONResponse  # type: ignore[import-untyped]

from timecard import __version__
from timecard.api.middleware import setup_middleware
from timecard.core.config import ConfigManager, configure_logging
from timecard.store import TimeSheetStore, create_store


def create_app(
    config: Optional[ConfigManager] = None,
    store: Optional[TimeSheetStore] = None,
) -> FastAPI:
    """Create and configure FastAPI application.

    Args:
        config: Optional configuration manager (creates default if None)
        store: Optional datastore (built from config if None). The same store,
            and so the same remote session, serves every request.

    Returns:
        Configured FastAPI application instance

    Example:
        >>> app = create_app()
        >>> # Or against the CSV datastore
        >>> app = create_app(config, LocalStore(Path("/tmp/timecard")))
    """
    if config is None:
        config = ConfigManager()

    app = FastAPI(
        title="Timecard API",
        description="REST API for Timecard time tracking backed by Salesforce",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    app.state.config = config
    app.state.store = store or create_store(config)

    setup_middleware(app, config)

    from timecard.api.endpoints import system, time_entries

    app.include_router(system.router, prefix="/api/v1", tags=["system"])
    app.include_router(time_entries.router, prefix="/api/v1/time-entries", tags=["time-entries"])

    @app.get("/", include_in_schema=False)
    async def root() -> JSONResponse:
        """Root endpoint - points at the docs."""
        return JSONResponse(
            {
                "message": "Timecard API",
                "version": __version__,
                "docs": "/docs",
                "health": "/api/v1/health",
            }
        )

    return app


def run_server(
    host: str = "localhost",
    port: int = 8000,
    reload: bool = False,
    workers: int = 1,
    ssl_certfile: Optional[Path] = None,
    ssl_keyfile: Optional[Path] = None,
    config: Optional[ConfigManager] = None,
) -> None:
    """Run the API server using Uvicorn.

    Note:
        This function blocks until the server is stopped. With reload or
        several workers the app is built by each worker from the default
        config file; otherwise the given config is used directly.
    """
    import uvicorn  # type: ignore[import-untyped]

    if config is None:
        config = ConfigManager()

    configure_logging(config)

    uvicorn_config: dict[str, Any] = {
        "host": host,
        "port": port,
        "log_level": config.get("api.advanced.log_level", "info"),
        "access_log": config.get("api.advanced.access_log", True),
    }

    if reload or workers > 1:
        uvicorn_config.update(
            {
                "app": "timecard.api.server:create_app",
                "factory": True,
                "reload": reload,
                # reload only works with 1 worker
                "workers": workers if not reload else 1,
            }
        )
    else:
        uvicorn_config["app"] = create_app(config)

    if ssl_certfile and ssl_keyfile:
        uvicorn_config.update(
            {
                "ssl_certfile": str(ssl_certfile),
                "ssl_keyfile": str(ssl_keyfile),
            }
        )

    uvicorn.run(**uvicorn_config)
