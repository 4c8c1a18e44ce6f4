from rest_framework import serializers

from terms.models import Term, TermState, TermStatus


class TermSerializer(serializers.ModelSerializer):
    departments = serializers.PrimaryKeyRelatedField(many=True, read_only=True)
    startDate = serializers.DateTimeField(source='start_date', read_only=True)
    endDate = serializers.DateTimeField(source='end_date', read_only=True)

    class Meta:
        model = Term
        fields = ('id', 'name', 'year', 'status', 'startDate', 'endDate', 'departments', 'created_at')


class TermCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=150)
    year = serializers.IntegerField(min_value=1)
    start_date = serializers.DateTimeField()
    end_date = serializers.DateTimeField()
    status = serializers.ChoiceField(choices=TermStatus.choices)
    departments = serializers.ListField(child=serializers.IntegerField(), allow_empty=True, required=False, default=list)


class TermActivateSerializer(serializers.Serializer):
    departments = serializers.ListField(child=serializers.IntegerField(), required=False, allow_empty=True)


class TermStateSerializer(serializers.ModelSerializer):
    departmentId = serializers.IntegerField(source='department_id', read_only=True)
    activeTerm = serializers.CharField(source='active_term', read_only=True)
    startTermVisibility = serializers.CharField(source='start_term_visibility', read_only=True)
    endTermVisibility = serializers.CharField(source='end_term_visibility', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)

    class Meta:
        model = TermState
        fields = ('departmentId', 'year', 'activeTerm', 'visibility', 'startTermVisibility', 'endTermVisibility', 'updatedAt')


class VisibilityResetSerializer(serializers.Serializer):
    year = serializers.IntegerField(min_value=1)


class VisibilityCompleteSerializer(serializers.Serializer):
    department_id = serializers.IntegerField(required=False)
    term = serializers.ChoiceField(choices=TermStatus.choices)
    year = serializers.IntegerField(min_value=1, required=False)
