"""
URL configuration for the tutoring chat backend.

URL Structure:
    /                              - ReDoc API documentation
    /schema/                       - OpenAPI schema (YAML)
    /health/                       - Health check endpoint (load balancers, Docker)
    /api/v1/chat/                  - Chat endpoints (see chat.urls)

WebSocket routes live in chat.routing and are mounted by config.asgi.
"""

from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView

from core.views import health_check

api_v1_patterns = [
    path("chat/", include("chat.urls")),
]

urlpatterns = [
    path("", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    path("health/", health_check, name="health_check"),
    path("api/v1/", include(api_v1_patterns)),
]
