from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

from fastapi import FastAPI
from fastapi.responses import RedirectResponse

import shotsense
from api.routes import analysis as analysis_routes
from shotsense.config import DetectorConfig


def create_app() -> FastAPI:
    app = FastAPI(
        title="Shot Detection API",
        description="Batch jump-shot re-analysis and per-user motion calibration for recorded IMU sessions.",
        version=shotsense.__version__,
    )
    app.include_router(analysis_routes.router)

    @app.get("/health", tags=["meta"])
    def health() -> Dict[str, Any]:
        """Engine version plus the detector thresholds requests run with."""
        detector = asdict(DetectorConfig())
        detector.pop("burst")
        return {"status": "ok", "version": shotsense.__version__, "detector": detector}

    @app.get("/", include_in_schema=False)
    async def redirect_to_docs() -> RedirectResponse:
        return RedirectResponse(url="/docs")

    return app


app = create_app()
