"""
Core app serializers.

Read-only representations of the notification inbox.
"""

from __future__ import annotations

from rest_framework import serializers


class NotificationSerializer(serializers.Serializer):
    """
    Read-only serializer for ``Notification`` instances.

    Used by the Notification ViewSet to list and retrieve notifications
    for the authenticated user.
    """

    id = serializers.IntegerField(read_only=True, help_text="Notification PK.")
    notice_id = serializers.CharField(read_only=True, help_text="Public notice number.")
    title = serializers.CharField(
        read_only=True,
        help_text="Short notification title.",
    )
    message = serializers.CharField(
        read_only=True,
        help_text="Full notification message body.",
    )
    category = serializers.CharField(read_only=True)
    priority = serializers.CharField(read_only=True)
    publisher = serializers.CharField(
        read_only=True,
        help_text="Reviewing office, or 'System' for final outcomes.",
    )
    case_id = serializers.CharField(read_only=True)
    case_type = serializers.CharField(read_only=True)
    is_read = serializers.BooleanField(
        read_only=True,
        help_text="Whether the recipient has marked this notification as read.",
    )
    published_at = serializers.DateTimeField(
        read_only=True,
        help_text="When the notification was published.",
    )
    read_at = serializers.DateTimeField(read_only=True, allow_null=True)


class UnreadCountSerializer(serializers.Serializer):
    unread = serializers.IntegerField(read_only=True)


class MarkAllReadSerializer(serializers.Serializer):
    marked = serializers.IntegerField(read_only=True, help_text="Notifications changed to read.")
