from rest_framework import serializers

from reviews.models import ReviewStatus
from terms.models import TermStatus


class ReviewInputBase(serializers.Serializer):
    term = serializers.ChoiceField(choices=TermStatus.choices)
    year = serializers.IntegerField(min_value=1, required=False)
    submitted = serializers.BooleanField(required=False, default=True)
    # version the client loaded; omitted on first write
    version = serializers.IntegerField(min_value=0, required=False, allow_null=True)


class TeacherReviewSerializer(ReviewInputBase):
    teacherId = serializers.IntegerField()
    comments = serializers.CharField(allow_blank=True, required=False, default='')
    scores = serializers.JSONField(required=False, default=dict)
    score = serializers.FloatField(required=False, allow_null=True, min_value=0, max_value=100)


class FinalReviewSerializer(ReviewInputBase):
    teacherId = serializers.IntegerField()
    finalComment = serializers.CharField(allow_blank=True, required=False, default='')
    finalScore = serializers.FloatField(required=False, allow_null=True, min_value=0, max_value=100)
    status = serializers.ChoiceField(choices=ReviewStatus.choices, required=False, allow_null=True)


class HodPerformanceSerializer(ReviewInputBase):
    hodId = serializers.IntegerField()
    comments = serializers.CharField(allow_blank=True, required=False, default='')
    scores = serializers.JSONField(required=False, default=dict)
    totalScore = serializers.FloatField(required=False, allow_null=True, min_value=0, max_value=100)


class DeanHodPerformanceSerializer(HodPerformanceSerializer):
    status = serializers.ChoiceField(choices=ReviewStatus.choices, required=False, allow_null=True)
