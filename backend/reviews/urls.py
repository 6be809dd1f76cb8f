"""
Reviews app URL configuration.

URL prefix (registered in ``backend/urls.py``)::

    path('api/reviews/', include('reviews.urls'))

Endpoint summary
----------------
GET   /api/reviews/case-types/       — Case types, stages and labels.
POST  /api/reviews/cases/            — Register a case.
GET   /api/reviews/cases/{case_id}/  — Retrieve a case.
PATCH /api/reviews/cases/{case_id}/  — Record a review decision.
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from . import views

app_name = "reviews"

router = DefaultRouter()
router.register(prefix=r"case-types", viewset=views.CaseTypeViewSet, basename="case-type")
router.register(prefix=r"cases", viewset=views.ReviewCaseViewSet, basename="review-case")

urlpatterns = [
    path("", include(router.urls)),
]
