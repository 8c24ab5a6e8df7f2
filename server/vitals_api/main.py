"""Vitals Emergency API - FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from vitals_monitor import CriticalPromptCooldown, VitalsMonitor, VitalsSeverityEngine

from .config import Settings, get_settings
from .routes import alerts, vitals
from .services.alert_queue import AlertQueue, AlertType

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    engine: Optional[VitalsSeverityEngine] = None,
) -> FastAPI:
    """
    Build the application and the services it shares across requests.

    One engine, one alert queue and one monitor live on ``app.state``.
    """
    settings = settings or get_settings()
    engine = engine or VitalsSeverityEngine(default_user_id=settings.default_user_id)
    alert_queue = AlertQueue(
        max_history=settings.alert_history_size,
        emergency_number=settings.emergency_number,
    )

    monitor = VitalsMonitor(
        engine,
        interval_seconds=settings.check_interval_seconds,
        cooldown=CriticalPromptCooldown(
            window=timedelta(seconds=settings.critical_prompt_cooldown_seconds)
        ),
        on_response=alert_queue.publish_response,
        on_critical_prompt=lambda response: alert_queue.publish_response(
            response, AlertType.CRITICAL_PROMPT
        ),
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if settings.simulate_vitals:
            logger.info(
                f"[API] Simulating vitals for {settings.default_user_id} "
                f"every {settings.check_interval_seconds}s"
            )
            monitor.start(settings.default_user_id)
        yield
        monitor.shutdown()

    app = FastAPI(
        title="Vitals Emergency API",
        description="Vitals severity checks, emergency responses and monitoring sessions",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.engine = engine
    app.state.alert_queue = alert_queue
    app.state.monitor = monitor

    # Configure CORS for frontend
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    app.include_router(vitals.router)
    app.include_router(alerts.router)

    @app.get("/health")
    async def health_check():
        """Health check endpoint for the API."""
        return {"status": "healthy", "service": "vitals-api"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    uvicorn.run(
        "server.vitals_api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=True,
    )
