"""Router dependencies resolved from app.state."""
from fastapi import Request

from registry.services.container import Services
from registry.services.issuer import SessionIssuer
from registry.services.lifecycle import SessionLifecycleManager
from registry.services.usage import UsageReporter


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_issuer(request: Request) -> SessionIssuer:
    return get_services(request).issuer


def get_lifecycle(request: Request) -> SessionLifecycleManager:
    return get_services(request).lifecycle


def get_usage_reporter(request: Request) -> UsageReporter:
    return get_services(request).usage
