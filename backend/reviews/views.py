"""
Reviews app ViewSets.

Views are intentionally thin and follow the same three steps as the rest
of the API:

    1. Parse / validate input via a serializer.
    2. Delegate to ``ReviewCaseService`` / ``CaseTypeCatalogService``.
    3. Serialize the result and return a DRF ``Response``.

Domain errors (``NotFound``, ``InvalidTransition``, ``StorageConflict``)
propagate to ``core.domain.exception_handler``.
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response

from core.constants import CASE_ID_PATTERN

from .serializers import (
    CaseTypeDescriptionSerializer,
    ReviewCaseCreateSerializer,
    ReviewCaseDetailSerializer,
    ReviewCaseUpdateSerializer,
    ReviewUpdateResultSerializer,
)
from .services import CaseTypeCatalogService, ReviewCaseService


class ReviewCaseViewSet(viewsets.ViewSet):
    """
    **Review case API.**

    Endpoints
    ---------
    POST  /api/reviews/cases/            → register a case
    GET   /api/reviews/cases/{case_id}/  → current snapshot
    PATCH /api/reviews/cases/{case_id}/  → apply a reviewer's decision

    Uses ``viewsets.ViewSet`` so only these three operations exist; cases
    are never deleted or replaced wholesale.
    """

    permission_classes = [IsAuthenticated]
    lookup_field = "case_id"
    lookup_value_regex = CASE_ID_PATTERN

    @extend_schema(
        summary="Register a review case",
        description=(
            "Create a case of the given type.  Unspecified stages start "
            "pending; the case ID is generated when omitted."
        ),
        request=ReviewCaseCreateSerializer,
        responses={
            201: OpenApiResponse(response=ReviewCaseDetailSerializer, description="Case registered."),
            400: OpenApiResponse(description="Unknown case type, stage or label."),
            409: OpenApiResponse(description="Case ID already in use."),
        },
        tags=["Reviews"],
    )
    def create(self, request: Request) -> Response:
        serializer = ReviewCaseCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        snapshot = ReviewCaseService.register_case(serializer.validated_data)
        return Response(ReviewCaseDetailSerializer(snapshot).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        summary="Retrieve a review case",
        responses={
            200: OpenApiResponse(response=ReviewCaseDetailSerializer, description="Case snapshot."),
            404: OpenApiResponse(description="Case not found."),
        },
        tags=["Reviews"],
    )
    def retrieve(self, request: Request, case_id: str = None) -> Response:
        snapshot = ReviewCaseService.get_case(case_id)
        return Response(ReviewCaseDetailSerializer(snapshot).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Record a review decision",
        description=(
            "Merge the given stage statuses, reviewer IDs and payload into "
            "the case.  Overall status is recomputed and notifications are "
            "sent for every stage or case that reaches a decision."
        ),
        request=ReviewCaseUpdateSerializer,
        responses={
            200: OpenApiResponse(response=ReviewUpdateResultSerializer, description="Update accepted."),
            400: OpenApiResponse(description="Unknown stage or label."),
            404: OpenApiResponse(description="Case not found or of another type."),
            409: OpenApiResponse(description="Out-of-order decision or concurrent update conflict."),
        },
        tags=["Reviews"],
    )
    def partial_update(self, request: Request, case_id: str = None) -> Response:
        serializer = ReviewCaseUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = ReviewCaseService.apply_update(case_id, serializer.validated_data)
        return Response(ReviewUpdateResultSerializer(result).data, status=status.HTTP_200_OK)


class CaseTypeViewSet(viewsets.ViewSet):
    """Read-only catalogue of case types, their stages and labels."""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="List case types",
        responses={200: OpenApiResponse(response=CaseTypeDescriptionSerializer(many=True), description="Case types.")},
        tags=["Reviews"],
    )
    def list(self, request: Request) -> Response:
        serializer = CaseTypeDescriptionSerializer(CaseTypeCatalogService.describe(), many=True)
        return Response(serializer.data, status=status.HTTP_200_OK)
