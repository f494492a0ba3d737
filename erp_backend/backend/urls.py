# backend/urls.py
"""
PROJECT URLS

Everything lives under /api/:
- /api/                 module index (public)
- /api/health/          database probe (public, 503 when the DB is down)
- /api/schema/, /api/docs/
- /api/auth/jwt/...     SimpleJWT token pair + refresh
- /api/<module>/...     one include per business app (API_MODULES)

The admin is mounted at ADMIN_PATH (settings/env), "/" redirects to docs.
"""

from __future__ import annotations

from django.conf import settings
from django.contrib import admin
from django.db import DatabaseError, connection
from django.urls import include, path
from django.views.generic import RedirectView
from drf_spectacular.utils import extend_schema, inline_serializer
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView
from rest_framework import serializers
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

# mount point -> urlconf
API_MODULES = {
    "inventory": "inventory.api.urls",
    "sales": "sales.api.urls",
    "purchasing": "purchases.api.urls",
    "fulfillment": "fulfillment.api.urls",
    "accounting": "accounting.api.urls",
}


@extend_schema(tags=["meta"], responses={200: dict})
@api_view(["GET"])
@permission_classes([AllowAny])
def api_root(request):
    return Response(
        {
            "message": "ERP API is running",
            "auth": {
                "jwt_create": "/api/auth/jwt/create/",
                "jwt_refresh": "/api/auth/jwt/refresh/",
            },
            "docs": {"swagger": "/api/docs/", "schema": "/api/schema/"},
            "modules": {name: f"/api/{name}/" for name in API_MODULES},
        }
    )


@extend_schema(
    tags=["meta"],
    responses=inline_serializer(
        name="HealthStatus",
        fields={
            "status": serializers.CharField(),
            "db": serializers.CharField(),
            "error": serializers.CharField(required=False),
        },
    ),
)
@api_view(["GET"])
@permission_classes([AllowAny])
def health_check(request):
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
    except DatabaseError as exc:
        return Response({"status": "degraded", "db": "down", "error": str(exc)}, status=503)
    return Response({"status": "ok", "db": "ok"})


ADMIN_PATH = getattr(settings, "ADMIN_PATH", "admin/").strip("/") + "/"

api_urlpatterns = [
    path("", api_root, name="api-root"),
    path("health/", health_check, name="health-check"),
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    path("docs/", SpectacularSwaggerView.as_view(url_name="schema"), name="swagger-ui"),
    path("auth/jwt/create/", TokenObtainPairView.as_view(), name="jwt-create"),
    path("auth/jwt/refresh/", TokenRefreshView.as_view(), name="jwt-refresh"),
    *[path(f"{name}/", include(urlconf)) for name, urlconf in API_MODULES.items()],
]

urlpatterns = [
    path(ADMIN_PATH, admin.site.urls),
    path("", RedirectView.as_view(url="/api/docs/", permanent=False), name="root"),
    path("api/", include(api_urlpatterns)),
]
