from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from workforce.core.settings import get_signing_secret, load_settings
from workforce.routes import dashboard, documents, events, messages, requests, roster, work_sessions


def create_app() -> FastAPI:
    settings = load_settings()
    # Fails fast in production when JWT_SECRET is missing.
    get_signing_secret()

    app = FastAPI(title="Workforce Sync API", version="0.1.0")
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(documents.router, prefix="/api")
    app.include_router(work_sessions.router, prefix="/api")
    app.include_router(messages.router, prefix="/api")
    app.include_router(requests.router, prefix="/api")
    app.include_router(dashboard.router, prefix="/api")
    app.include_router(roster.router, prefix="/api")
    app.include_router(events.router)

    @app.get("/", include_in_schema=False)
    async def root() -> JSONResponse:
        """Provide a lightweight landing page for container checks."""
        return JSONResponse(
            {
                "message": "Workforce Sync API",
                "docs": "/docs",
                "events": "/ws/work-sessions",
            }
        )

    return app


app = create_app()
