from rest_framework import serializers

from healthhub_backend.doctors.models import ClinicDoctor, ReferralDoctor


class ClinicDoctorSerializer(serializers.ModelSerializer):
    """Read-only serializer for ClinicDoctor."""

    class Meta:
        model = ClinicDoctor
        fields = [
            'id',
            'doctor_number',
            'name',
            'qualification',
            'specialty',
            'registration_number',
            'phone',
            'email',
            'letterhead_note',
            'is_active',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class ReferralDoctorSerializer(serializers.ModelSerializer):
    """Read-only serializer for ReferralDoctor with the linked clinic doctor name."""

    clinic_doctor_name = serializers.CharField(source='clinic_doctor.name', read_only=True, default=None)

    class Meta:
        model = ReferralDoctor
        fields = [
            'id',
            'doctor_number',
            'name',
            'phone',
            'email',
            'commission_percent',
            'clinic_doctor',
            'clinic_doctor_name',
            'is_active',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class ReferralDoctorWriteSerializer(serializers.Serializer):
    """Shape check; range and uniqueness rules are enforced by the service."""

    name = serializers.CharField(max_length=200, required=False)
    phone = serializers.CharField(max_length=32, required=False, allow_blank=True)
    email = serializers.EmailField(required=False, allow_blank=True)
    commission_percent = serializers.DecimalField(max_digits=6, decimal_places=2, required=False)
    clinic_doctor_id = serializers.IntegerField(required=False, allow_null=True)
    is_active = serializers.BooleanField(required=False)


class ClinicDoctorWriteSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=200, required=False)
    qualification = serializers.CharField(max_length=200, required=False, allow_blank=True)
    specialty = serializers.CharField(max_length=200, required=False, allow_blank=True)
    registration_number = serializers.CharField(max_length=64, required=False)
    phone = serializers.CharField(max_length=32, required=False, allow_blank=True)
    email = serializers.EmailField(required=False, allow_blank=True)
    letterhead_note = serializers.CharField(required=False, allow_blank=True)
    referral_doctor_id = serializers.IntegerField(required=False, allow_null=True)
    is_active = serializers.BooleanField(required=False)
