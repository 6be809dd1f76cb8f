"""
Core app views — **Thin Views**.

Each view delegates all business logic to the corresponding service in
``core.services``.  Views are responsible only for:

1. Extracting and validating parameters from the request.
2. Calling the service with the authenticated user and parameters.
3. Serialising the result and returning an HTTP ``Response``.
"""

from __future__ import annotations

from drf_spectacular.utils import (
    OpenApiParameter,
    OpenApiResponse,
    extend_schema,
)
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response

from .serializers import (
    MarkAllReadSerializer,
    NotificationSerializer,
    UnreadCountSerializer,
)
from .services import NotificationInboxService


class NotificationViewSet(viewsets.ViewSet):
    """
    **Notification API** — inbox of review notifications for the
    authenticated student.

    Endpoints
    ---------
    GET  /api/core/notifications/               → list notifications
    GET  /api/core/notifications/unread-count/  → number of unread
    POST /api/core/notifications/{id}/read/     → mark one as read
    POST /api/core/notifications/read-all/      → mark all as read

    **Authentication**: Required (``IsAuthenticated``).
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="List notifications",
        description="Return the notifications addressed to the authenticated user.",
        parameters=[
            OpenApiParameter(
                name="unread",
                type=bool,
                required=False,
                description="Only return unread notifications.",
            ),
        ],
        responses={200: OpenApiResponse(response=NotificationSerializer(many=True), description="Notification list.")},
        tags=["Notifications"],
    )
    def list(self, request: Request) -> Response:
        unread_only = request.query_params.get("unread", "").lower() in ("1", "true", "yes")
        service = NotificationInboxService(user=request.user)
        notifications = service.list_notifications(unread_only=unread_only)
        serializer = NotificationSerializer(notifications, many=True)
        return Response(serializer.data, status=status.HTTP_200_OK)

    @action(detail=False, methods=["get"], url_path="unread-count")
    @extend_schema(
        summary="Unread notification count",
        responses={200: OpenApiResponse(response=UnreadCountSerializer, description="Unread count.")},
        tags=["Notifications"],
    )
    def unread_count(self, request: Request) -> Response:
        service = NotificationInboxService(user=request.user)
        serializer = UnreadCountSerializer({"unread": service.unread_count()})
        return Response(serializer.data, status=status.HTTP_200_OK)

    @action(detail=True, methods=["post"], url_path="read")
    @extend_schema(
        summary="Mark notification as read",
        description="Mark a single notification as read by ID.",
        request=None,
        responses={
            200: OpenApiResponse(response=NotificationSerializer, description="Updated notification."),
            404: OpenApiResponse(description="Notification not found."),
        },
        tags=["Notifications"],
    )
    def mark_as_read(self, request: Request, pk: int = None) -> Response:
        """
        **POST /api/core/notifications/{id}/read/**

        Delegates to ``NotificationInboxService.mark_as_read()``.
        """
        service = NotificationInboxService(user=request.user)
        notification = service.mark_as_read(notification_id=pk)
        serializer = NotificationSerializer(notification)
        return Response(serializer.data, status=status.HTTP_200_OK)

    @action(detail=False, methods=["post"], url_path="read-all")
    @extend_schema(
        summary="Mark all notifications as read",
        request=None,
        responses={200: OpenApiResponse(response=MarkAllReadSerializer, description="Number marked.")},
        tags=["Notifications"],
    )
    def read_all(self, request: Request) -> Response:
        service = NotificationInboxService(user=request.user)
        serializer = MarkAllReadSerializer({"marked": service.mark_all_as_read()})
        return Response(serializer.data, status=status.HTTP_200_OK)
