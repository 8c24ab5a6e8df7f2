"""Request dependencies resolving the services created in create_app()."""
from fastapi import Request

from vitals_monitor import VitalsMonitor, VitalsSeverityEngine

from .config import Settings
from .services.alert_queue import AlertQueue


def get_engine(request: Request) -> VitalsSeverityEngine:
    return request.app.state.engine


def get_monitor(request: Request) -> VitalsMonitor:
    return request.app.state.monitor


def get_alert_queue(request: Request) -> AlertQueue:
    return request.app.state.alert_queue


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings
