from rest_framework import serializers

from healthhub_backend.patients.models import Patient, PatientChangeLog, PatientIdentifier


class PatientIdentifierSerializer(serializers.ModelSerializer):
    class Meta:
        model = PatientIdentifier
        fields = ['id', 'type', 'value', 'is_primary', 'created_at']
        read_only_fields = fields


class PatientReadSerializer(serializers.ModelSerializer):
    """Read-only serializer with identifiers and derived age."""

    age = serializers.IntegerField(read_only=True)
    identifiers = PatientIdentifierSerializer(many=True, read_only=True)

    class Meta:
        model = Patient
        fields = [
            'id',
            'patient_number',
            'name',
            'gender',
            'age',
            'year_of_birth',
            'date_of_birth',
            'address',
            'identifiers',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class IdentifierInputSerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=PatientIdentifier.TYPE_CHOICES)
    value = serializers.CharField(max_length=254)
    is_primary = serializers.BooleanField(default=False)


class PatientCreateSerializer(serializers.Serializer):
    """Shape check only; demographic rules live in patients.validation."""

    name = serializers.CharField(max_length=200)
    age = serializers.IntegerField(required=False, allow_null=True)
    date_of_birth = serializers.DateField(required=False, allow_null=True)
    gender = serializers.CharField(max_length=1)
    address = serializers.CharField(required=False, allow_blank=True, default='')
    phone = serializers.CharField(required=False, allow_blank=True)
    email = serializers.CharField(required=False, allow_blank=True)
    identifiers = IdentifierInputSerializer(many=True, required=False)
    force_duplicate = serializers.BooleanField(required=False, default=False)


class PatientUpdateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=200, required=False)
    age = serializers.IntegerField(required=False, allow_null=True)
    date_of_birth = serializers.DateField(required=False, allow_null=True)
    gender = serializers.CharField(max_length=1, required=False)
    address = serializers.CharField(required=False, allow_blank=True)
    phone = serializers.CharField(required=False, allow_blank=True)
    email = serializers.CharField(required=False, allow_blank=True)
    change_reason = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class PatientMatchSerializer(serializers.Serializer):
    patient = PatientReadSerializer(read_only=True)
    score = serializers.IntegerField(read_only=True)
    confidence = serializers.CharField(read_only=True)
    match_type = serializers.CharField(read_only=True)


class PatientChangeLogSerializer(serializers.ModelSerializer):
    changed_by_name = serializers.SerializerMethodField()

    class Meta:
        model = PatientChangeLog
        fields = [
            'id',
            'field_name',
            'old_value',
            'new_value',
            'change_type',
            'change_reason',
            'changed_by',
            'changed_by_name',
            'changed_by_role',
            'request_id',
            'created_at',
        ]
        read_only_fields = fields

    def get_changed_by_name(self, obj):
        user = getattr(obj, 'changed_by', None)
        if user is None:
            return None
        return user.get_full_name() or user.username


class Patient360Serializer(serializers.Serializer):
    patient = PatientReadSerializer(read_only=True)
    visit_timeline = serializers.ListField(read_only=True)
    financial_summary = serializers.DictField(read_only=True)
    last_visit_at = serializers.DateTimeField(read_only=True, allow_null=True)
    branches = serializers.ListField(read_only=True)
