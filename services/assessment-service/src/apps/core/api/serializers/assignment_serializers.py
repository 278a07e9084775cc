# services/assessment-service/src/apps/core/api/serializers/assignment_serializers.py
"""
Assignment Serializers

Serializers for exam and training request assignment endpoints.
"""

from rest_framework import serializers

from ...models import RequestStatus


class AssignmentRequestSerializer(serializers.Serializer):
    """Serializer for exam and training requests."""

    id = serializers.CharField()
    pool = serializers.CharField()
    student_id = serializers.CharField()
    student_name = serializers.CharField(allow_blank=True)
    requested_date = serializers.CharField(allow_null=True)
    requested_time = serializers.CharField(allow_null=True)
    status = serializers.CharField()
    assigned_staff_id = serializers.CharField(allow_null=True)
    assigned_staff_name = serializers.CharField(allow_null=True)
    topic_name = serializers.CharField(allow_null=True)
    comments = serializers.CharField(allow_blank=True)


class AssignmentOutcomeSerializer(serializers.Serializer):
    request_id = serializers.CharField()
    staff_id = serializers.CharField(allow_null=True)
    staff_name = serializers.CharField(allow_null=True)
    error = serializers.CharField(allow_null=True)


class AssignmentResultSerializer(serializers.Serializer):
    """Serializer for an auto-assignment batch summary."""

    pool = serializers.CharField()
    assigned_count = serializers.IntegerField()
    failed_count = serializers.IntegerField()
    assigned = AssignmentOutcomeSerializer(many=True)
    failed = AssignmentOutcomeSerializer(many=True)
    unassigned = serializers.ListField(child=serializers.CharField())
    by_staff = serializers.SerializerMethodField()

    def get_by_staff(self, obj) -> dict:
        return obj.counts_by_staff()


class ReassignSerializer(serializers.Serializer):
    """Serializer for moving a request to another staff member."""

    staff_id = serializers.CharField()


class RequestStatusSerializer(serializers.Serializer):
    """Serializer for advancing a request's status."""

    status = serializers.ChoiceField(choices=[
        RequestStatus.IN_PROGRESS,
        RequestStatus.COMPLETED,
        RequestStatus.CANCELLED,
    ])
