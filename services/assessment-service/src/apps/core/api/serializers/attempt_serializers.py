# services/assessment-service/src/apps/core/api/serializers/attempt_serializers.py
"""
Attempt Serializers

Serializers for quiz attempt, grading and results endpoints.
"""

from rest_framework import serializers


class QuizAnswerSerializer(serializers.Serializer):
    """Serializer for a stored answer."""

    question_id = serializers.CharField()
    answer_text = serializers.CharField(allow_blank=True)
    is_correct = serializers.BooleanField(allow_null=True)
    points = serializers.IntegerField(allow_null=True)
    saved_at = serializers.DateTimeField(allow_null=True)


class QuizAttemptSerializer(serializers.Serializer):
    """Serializer for quiz attempts."""

    id = serializers.CharField()
    quiz_id = serializers.CharField()
    student_id = serializers.CharField()
    student_name = serializers.CharField(allow_blank=True)
    status = serializers.CharField()
    start_time = serializers.DateTimeField(allow_null=True)
    end_time = serializers.DateTimeField(allow_null=True)
    score = serializers.IntegerField(allow_null=True)
    max_score = serializers.IntegerField()
    answers = QuizAnswerSerializer(many=True)
    last_saved = serializers.DateTimeField(allow_null=True)
    token_id = serializers.CharField(allow_null=True)


class AttemptStatusSerializer(serializers.Serializer):
    """Attempt with its remaining time and, once completed, its result."""

    attempt = QuizAttemptSerializer()
    time_remaining = serializers.IntegerField(allow_null=True)
    percentage = serializers.IntegerField(allow_null=True)
    passed = serializers.BooleanField(allow_null=True)


class AttemptStartSerializer(serializers.Serializer):
    """Serializer for starting an attempt, directly or with a token."""

    quiz_id = serializers.CharField(required=False)
    token = serializers.CharField(required=False, max_length=32)
    student_name = serializers.CharField(required=False)

    def validate(self, data):
        if not data.get('quiz_id') and not data.get('token'):
            raise serializers.ValidationError('quiz_id or token is required')
        return data


class AnswerSaveSerializer(serializers.Serializer):
    """Serializer for autosaving one answer."""

    question_id = serializers.CharField()
    answer_text = serializers.CharField(allow_blank=True, trim_whitespace=False)
    initiated_at = serializers.DateTimeField(required=False)


class AnswerGradeSerializer(serializers.Serializer):
    """Reviewer's grade for one answer."""

    question_id = serializers.CharField()
    points = serializers.IntegerField(min_value=0)
    is_correct = serializers.BooleanField(required=False, allow_null=True, default=None)


class AttemptGradeSerializer(serializers.Serializer):
    """Serializer for manual grading and feedback."""

    grades = AnswerGradeSerializer(many=True, required=False)
    feedback = serializers.CharField(required=False, allow_blank=True)

    def validate(self, data):
        if not data.get('grades') and 'feedback' not in data:
            raise serializers.ValidationError('grades or feedback is required')
        return data


class TestSubmissionSerializer(serializers.Serializer):
    """Serializer for test submissions."""

    id = serializers.CharField()
    token_id = serializers.CharField()
    attempt_id = serializers.CharField()
    student_id = serializers.CharField()
    student_name = serializers.CharField(allow_blank=True)
    trainer_id = serializers.CharField()
    quiz_title = serializers.CharField(allow_blank=True)
    score = serializers.IntegerField(allow_null=True)
    max_score = serializers.IntegerField()
    status = serializers.CharField()
    feedback = serializers.CharField(allow_blank=True)
