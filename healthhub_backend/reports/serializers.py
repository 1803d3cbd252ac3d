from rest_framework import serializers

from healthhub_backend.reports.models import ReportAccessToken, ReportVersion, TestResult


class TestResultSerializer(serializers.ModelSerializer):
    test_code = serializers.CharField(source='test.code', read_only=True)
    test_name = serializers.CharField(source='test.name', read_only=True)

    class Meta:
        model = TestResult
        fields = [
            'id',
            'test_order_id',
            'test_id',
            'test_code',
            'test_name',
            'value',
            'flag',
            'notes',
            'updated_at',
        ]
        read_only_fields = fields


class ReportVersionSerializer(serializers.ModelSerializer):
    results = TestResultSerializer(many=True, read_only=True)
    finalized_by = serializers.SerializerMethodField()

    class Meta:
        model = ReportVersion
        fields = [
            'id',
            'report_id',
            'version_num',
            'status',
            'finalized_at',
            'finalized_by',
            'results',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields

    def get_finalized_by(self, obj):
        user = obj.finalized_by
        if user is None:
            return None
        return {'id': user.pk, 'username': user.username}


class ReportVersionSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = ReportVersion
        fields = ['id', 'report_id', 'version_num', 'status', 'finalized_at', 'created_at']
        read_only_fields = fields


class AccessTokenSerializer(serializers.ModelSerializer):
    url = serializers.SerializerMethodField()

    class Meta:
        model = ReportAccessToken
        fields = [
            'token',
            'report_version_id',
            'url',
            'expires_at',
            'access_count',
            'last_accessed_at',
            'created_at',
        ]
        read_only_fields = fields

    def get_url(self, obj):
        base_url = self.context.get('base_url', '')
        return f'{base_url}/r/{obj.token}'


class ResultEntrySerializer(serializers.Serializer):
    test_id = serializers.IntegerField()
    value = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    flag = serializers.ChoiceField(choices=TestResult.FLAG_CHOICES, required=False, allow_null=True, allow_blank=True)
    notes = serializers.CharField(required=False, allow_null=True, allow_blank=True)


class SaveResultsSerializer(serializers.Serializer):
    results = ResultEntrySerializer(many=True, allow_empty=False)


class AccessTokenCreateSerializer(serializers.Serializer):
    expires_in_days = serializers.IntegerField(required=False, allow_null=True, min_value=1)


class GenerateViewTokenSerializer(serializers.Serializer):
    report_version_id = serializers.IntegerField()
