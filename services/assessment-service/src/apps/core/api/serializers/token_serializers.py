# services/assessment-service/src/apps/core/api/serializers/token_serializers.py
"""
Token Serializers

Serializers for test token endpoints.
"""

from rest_framework import serializers


class QuizOptionSerializer(serializers.Serializer):
    """Option as shown to a student; the answer key stays server side."""

    id = serializers.CharField()
    text = serializers.CharField()


class QuizQuestionSerializer(serializers.Serializer):
    """Question as shown to a student."""

    id = serializers.CharField()
    text = serializers.CharField()
    question_type = serializers.CharField()
    points = serializers.IntegerField()
    order = serializers.IntegerField()
    options = QuizOptionSerializer(many=True)


class QuizSerializer(serializers.Serializer):
    """Quiz unlocked by a token."""

    id = serializers.CharField()
    title = serializers.CharField()
    description = serializers.CharField(allow_blank=True)
    time_limit = serializers.IntegerField(allow_null=True)
    attempts = serializers.IntegerField()
    grading_method = serializers.CharField()
    max_score = serializers.IntegerField()
    questions = QuizQuestionSerializer(many=True)


class TestTokenSerializer(serializers.Serializer):
    """Serializer for test tokens."""

    id = serializers.CharField()
    token = serializers.CharField()
    quiz_id = serializers.CharField()
    quiz_title = serializers.CharField(allow_blank=True)
    trainer_id = serializers.CharField()
    trainer_name = serializers.CharField(allow_blank=True)
    status = serializers.CharField()
    effective_status = serializers.SerializerMethodField()
    created_at = serializers.DateTimeField(allow_null=True)
    expires_at = serializers.DateTimeField(allow_null=True)
    assigned_student_id = serializers.CharField(allow_null=True)
    assigned_student_name = serializers.CharField(allow_null=True)
    used_at = serializers.DateTimeField(allow_null=True)
    instructions = serializers.CharField(allow_blank=True)

    def get_effective_status(self, obj) -> str:
        return obj.effective_status()


class TokenIssueSerializer(serializers.Serializer):
    """Serializer for issuing a token."""

    quiz_id = serializers.CharField()
    expiration_hours = serializers.IntegerField(min_value=1, required=False)
    instructions = serializers.CharField(required=False, allow_blank=True, default='')
    student_id = serializers.CharField(required=False)
    student_name = serializers.CharField(required=False)


class TokenAssignSerializer(serializers.Serializer):
    """Serializer for binding a token to a student."""

    student_id = serializers.CharField()
    student_name = serializers.CharField()


class TokenRedeemSerializer(serializers.Serializer):
    """Serializer for validating a token string."""

    token = serializers.CharField(max_length=32)
    student_name = serializers.CharField(required=False)


class RedeemedTokenSerializer(serializers.Serializer):
    token = TestTokenSerializer()
    quiz = QuizSerializer()
