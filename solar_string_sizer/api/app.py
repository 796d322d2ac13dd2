from __future__ import annotations

from fastapi import FastAPI

from .routes import catalog_router, extraction_router, history_router, sizing_router


def create_app() -> FastAPI:
    """
    Instantiate the FastAPI application and register routers.

    Creates the main FastAPI application with CORS middleware and
    registers all domain-specific routers:
    - sizing: String sizing, PDF reports and module presets
    - catalog: Module and inverter catalog
    - history: Recent sizing runs
    - extraction: Datasheet text parsing

    Returns:
        FastAPI: Configured FastAPI application instance ready to serve.

    Example:
        ```python
        app = create_app()
        uvicorn.run(app, host="0.0.0.0", port=8000)

        # Or use the pre-created instance
        from solar_string_sizer.api.app import app
        ```
    """
    app = FastAPI(
        title="Solar String Sizer API",
        version="0.1.0",
        description="API for sizing PV module strings against inverter MPPT limits.",
    )

    from fastapi.middleware.cors import CORSMiddleware

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(sizing_router)
    app.include_router(catalog_router)
    app.include_router(history_router)
    app.include_router(extraction_router)

    return app


app = create_app()
