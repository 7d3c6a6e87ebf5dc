from fastapi import FastAPI

from app.api.routes.health import router as health_router
from app.api.routes.dashboard import router as dashboard_router


def create_app() -> FastAPI:
    app = FastAPI(
        title="Kura Service",
        version="0.1.0",
        description="Kura: personal balance-sheet dashboard derived from a spreadsheet snapshot.",
    )

    app.include_router(health_router)
    app.include_router(dashboard_router)

    @app.get("/", tags=["meta"])
    async def root() -> dict:
        return {"service": "kura", "status": "running"}

    return app


app = create_app()
