from rest_framework import serializers

from healthhub_backend.patients.serializers import PatientReadSerializer
from healthhub_backend.visits.models import Bill, ClinicVisit, TestOrder, Visit


def _rupees(paise):
    return (paise or 0) / 100


class TestOrderSerializer(serializers.ModelSerializer):
    """Order with the catalogue values as they were when it was placed."""

    test_id = serializers.IntegerField(read_only=True)
    test_name = serializers.CharField(source='test_name_snapshot', read_only=True)
    test_code = serializers.CharField(source='test_code_snapshot', read_only=True)
    price = serializers.SerializerMethodField()
    reference_range = serializers.SerializerMethodField()

    class Meta:
        model = TestOrder
        fields = [
            'id',
            'visit_id',
            'test_id',
            'test_name',
            'test_code',
            'price',
            'price_in_paise',
            'referral_commission_percentage',
            'reference_range',
            'created_at',
        ]
        read_only_fields = fields

    def get_price(self, obj):
        return _rupees(obj.price_in_paise)

    def get_reference_range(self, obj):
        return {
            'min': obj.reference_min_snapshot,
            'max': obj.reference_max_snapshot,
            'unit': obj.reference_unit_snapshot,
        }


class _VisitBaseSerializer(serializers.ModelSerializer):
    patient = PatientReadSerializer(read_only=True)
    total_amount = serializers.SerializerMethodField()
    payment_type = serializers.SerializerMethodField()
    payment_status = serializers.SerializerMethodField()

    def get_total_amount(self, obj):
        return _rupees(obj.total_amount_in_paise)

    def get_payment_type(self, obj):
        bill = getattr(obj, 'bill', None)
        return bill.payment_type if bill else Bill.PAYMENT_CASH

    def get_payment_status(self, obj):
        bill = getattr(obj, 'bill', None)
        return bill.payment_status if bill else Bill.STATUS_PENDING


class DiagnosticVisitSerializer(_VisitBaseSerializer):
    referral_doctor = serializers.SerializerMethodField()
    test_orders = TestOrderSerializer(many=True, read_only=True)
    report = serializers.SerializerMethodField()

    class Meta:
        model = Visit
        fields = [
            'id',
            'branch_id',
            'bill_number',
            'patient_id',
            'patient',
            'domain',
            'status',
            'total_amount',
            'total_amount_in_paise',
            'payment_type',
            'payment_status',
            'referral_doctor_id',
            'referral_doctor',
            'test_orders',
            'report',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields

    def get_referral_doctor(self, obj):
        doctor = obj.referral_doctor
        if doctor is None:
            return None
        return {'id': doctor.pk, 'doctor_number': doctor.doctor_number, 'name': doctor.name}

    def get_report(self, obj):
        report = getattr(obj, 'report', None)
        if report is None:
            return None
        latest = report.versions.order_by('-version_num').first()
        return {
            'id': report.pk,
            'current_version': {
                'id': latest.pk,
                'version_num': latest.version_num,
                'status': latest.status,
                'finalized_at': latest.finalized_at,
            } if latest else None,
        }


class ClinicVisitSerializer(_VisitBaseSerializer):
    status = serializers.SerializerMethodField()
    visit_type = serializers.CharField(source='clinic_visit.visit_type', read_only=True, default=ClinicVisit.VISIT_TYPE_OP)
    hospital_ward = serializers.CharField(source='clinic_visit.hospital_ward', read_only=True, default='')
    doctor = serializers.SerializerMethodField()
    consultation_fee = serializers.SerializerMethodField()

    class Meta:
        model = Visit
        fields = [
            'id',
            'branch_id',
            'bill_number',
            'patient_id',
            'patient',
            'domain',
            'status',
            'visit_type',
            'hospital_ward',
            'doctor',
            'consultation_fee',
            'total_amount',
            'total_amount_in_paise',
            'payment_type',
            'payment_status',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields

    def get_status(self, obj):
        clinic_visit = getattr(obj, 'clinic_visit', None)
        return clinic_visit.status if clinic_visit else obj.status

    def get_doctor(self, obj):
        clinic_visit = getattr(obj, 'clinic_visit', None)
        if clinic_visit is None:
            return None
        doctor = clinic_visit.clinic_doctor
        return {
            'id': doctor.pk,
            'doctor_number': doctor.doctor_number,
            'name': doctor.name,
            'qualification': doctor.qualification,
            'specialty': doctor.specialty,
        }

    def get_consultation_fee(self, obj):
        clinic_visit = getattr(obj, 'clinic_visit', None)
        return _rupees(clinic_visit.consultation_fee_in_paise if clinic_visit else 0)


class DiagnosticVisitCreateSerializer(serializers.Serializer):
    patient_id = serializers.IntegerField()
    test_ids = serializers.ListField(child=serializers.IntegerField(), allow_empty=False)
    referral_doctor_id = serializers.IntegerField(required=False, allow_null=True)
    payment_type = serializers.ChoiceField(choices=Bill.PAYMENT_TYPE_CHOICES, required=False)
    payment_status = serializers.ChoiceField(choices=Bill.PAYMENT_STATUS_CHOICES, required=False)


class VisitUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Visit.STATUS_CHOICES, required=False)
    payment_type = serializers.ChoiceField(choices=Bill.PAYMENT_TYPE_CHOICES, required=False)
    payment_status = serializers.ChoiceField(choices=Bill.PAYMENT_STATUS_CHOICES, required=False)


class AddTestsSerializer(serializers.Serializer):
    test_ids = serializers.ListField(child=serializers.IntegerField(), allow_empty=False)


class ClinicVisitCreateSerializer(serializers.Serializer):
    patient_id = serializers.IntegerField()
    clinic_doctor_id = serializers.IntegerField()
    visit_type = serializers.ChoiceField(choices=ClinicVisit.VISIT_TYPE_CHOICES, default=ClinicVisit.VISIT_TYPE_OP)
    hospital_ward = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=100)
    # rupees
    consultation_fee = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)
    payment_type = serializers.ChoiceField(choices=Bill.PAYMENT_TYPE_CHOICES, required=False)
    payment_status = serializers.ChoiceField(choices=Bill.PAYMENT_STATUS_CHOICES, required=False)
