"""
Core app URL configuration.

URL prefix (registered in ``backend/urls.py``)::

    path('api/core/', include('core.urls'))

Endpoint summary
----------------
GET  /api/core/notifications/               — List notifications for the authenticated user.
GET  /api/core/notifications/unread-count/  — Unread notification count.
POST /api/core/notifications/{id}/read/     — Mark a single notification as read.
POST /api/core/notifications/read-all/      — Mark every notification as read.
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from . import views

app_name = "core"

# ── Router for ViewSet-based endpoints ───────────────────────────────
router = DefaultRouter()
router.register(
    prefix=r"notifications",
    viewset=views.NotificationViewSet,
    basename="notification",
)

urlpatterns = [
    # ── Notifications (router-generated URLs) ────────────────────────
    path("", include(router.urls)),
]
