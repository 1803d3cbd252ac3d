from rest_framework import serializers

from healthhub_backend.doctors.models import ClinicDoctor, ReferralDoctor
from healthhub_backend.payouts.models import DoctorPayoutLedger


def _rupees(paise):
    return (paise or 0) / 100


class PayoutSummarySerializer(serializers.ModelSerializer):
    doctor_id = serializers.IntegerField(read_only=True)
    doctor_name = serializers.SerializerMethodField()
    branch_name = serializers.CharField(source='branch.name', read_only=True)
    derived_amount = serializers.SerializerMethodField()
    is_paid = serializers.BooleanField(read_only=True)

    class Meta:
        model = DoctorPayoutLedger
        fields = [
            'id',
            'doctor_type',
            'doctor_id',
            'doctor_name',
            'branch_id',
            'branch_name',
            'period_start_date',
            'period_end_date',
            'derived_amount_in_paise',
            'derived_amount',
            'derived_at',
            'is_paid',
            'paid_at',
            'payment_method',
        ]
        read_only_fields = fields

    def get_doctor_name(self, obj):
        doctor = obj.doctor
        return doctor.name if doctor is not None else 'Unknown'

    def get_derived_amount(self, obj):
        return _rupees(obj.derived_amount_in_paise)


class PayoutLineItemSerializer(serializers.Serializer):
    visit_id = serializers.IntegerField()
    bill_number = serializers.CharField()
    patient_name = serializers.CharField()
    date = serializers.DateTimeField()
    test_or_fee = serializers.CharField()
    amount_in_paise = serializers.IntegerField()
    commission_percentage = serializers.FloatField(allow_null=True)
    derived_commission_in_paise = serializers.IntegerField()


class PayoutDetailSerializer(PayoutSummarySerializer):
    line_items = serializers.SerializerMethodField()

    class Meta(PayoutSummarySerializer.Meta):
        fields = PayoutSummarySerializer.Meta.fields + [
            'payment_reference_id',
            'notes',
            'reviewed_at',
            'line_items',
        ]
        read_only_fields = fields

    def get_line_items(self, obj):
        return PayoutLineItemSerializer(self.context.get('line_items', []), many=True).data


class DerivePayoutSerializer(serializers.Serializer):
    doctor_type = serializers.ChoiceField(choices=DoctorPayoutLedger.DOCTOR_TYPE_CHOICES)
    doctor_id = serializers.IntegerField()
    period_start_date = serializers.DateField()
    period_end_date = serializers.DateField()


class MarkPaidSerializer(serializers.Serializer):
    payment_method = serializers.CharField()
    payment_reference_id = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=128)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class PayoutReferralDoctorSerializer(serializers.ModelSerializer):
    class Meta:
        model = ReferralDoctor
        fields = ['id', 'doctor_number', 'name', 'commission_percent']
        read_only_fields = fields


class PayoutClinicDoctorSerializer(serializers.ModelSerializer):
    class Meta:
        model = ClinicDoctor
        fields = ['id', 'doctor_number', 'name', 'qualification', 'specialty']
        read_only_fields = fields
