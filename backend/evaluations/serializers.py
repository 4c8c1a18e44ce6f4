from rest_framework import serializers

from evaluations.models import Question
from terms.models import TermStatus


class QuestionSerializer(serializers.ModelSerializer):
    departmentId = serializers.IntegerField(source='department_id', read_only=True)
    optionScores = serializers.JSONField(source='option_scores', read_only=True)
    isActive = serializers.BooleanField(source='is_active', read_only=True)
    isPublished = serializers.BooleanField(source='is_published', read_only=True)

    class Meta:
        model = Question
        fields = ('id', 'departmentId', 'term', 'year', 'question', 'type', 'options', 'optionScores', 'order', 'isActive', 'isPublished')


class TeacherQuestionSerializer(serializers.ModelSerializer):
    """Question as shown to a teacher; option scores stay hidden."""

    class Meta:
        model = Question
        fields = ('id', 'question', 'type', 'options', 'order')


class QuestionWriteSerializer(serializers.Serializer):
    question = serializers.CharField()
    type = serializers.ChoiceField(choices=Question.QuestionType.choices)
    term = serializers.ChoiceField(choices=TermStatus.choices)
    options = serializers.ListField(child=serializers.CharField(allow_blank=True), required=False, default=list)
    optionScores = serializers.ListField(child=serializers.FloatField(), required=False, default=list)
    order = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    year = serializers.IntegerField(min_value=1, required=False)


class QuestionUpdateSerializer(serializers.Serializer):
    question = serializers.CharField(required=False)
    type = serializers.ChoiceField(choices=Question.QuestionType.choices, required=False)
    options = serializers.ListField(child=serializers.CharField(allow_blank=True), required=False)
    optionScores = serializers.ListField(child=serializers.FloatField(), required=False)
    order = serializers.IntegerField(min_value=1, required=False)
    isActive = serializers.BooleanField(required=False)

    FIELD_MAP = {'optionScores': 'option_scores', 'isActive': 'is_active'}

    def to_service_fields(self):
        return {self.FIELD_MAP.get(k, k): v for k, v in self.validated_data.items()}


class TermYearSerializer(serializers.Serializer):
    term = serializers.ChoiceField(choices=TermStatus.choices)
    year = serializers.IntegerField(min_value=1, required=False)


class SubmissionSerializer(TermYearSerializer):
    answers = serializers.JSONField()
    selfComment = serializers.CharField(allow_blank=True, required=False, default='')


class DraftSerializer(TermYearSerializer):
    answers = serializers.JSONField()
