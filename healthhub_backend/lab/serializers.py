from rest_framework import serializers

from healthhub_backend.lab.models import LabTest


class LabSubTestSerializer(serializers.ModelSerializer):
    class Meta:
        model = LabTest
        fields = ['id', 'code', 'name', 'reference_min', 'reference_max', 'reference_unit', 'is_active']
        read_only_fields = fields


class LabTestSerializer(serializers.ModelSerializer):
    """Read-only serializer; price is exposed both in paise and rupees."""

    price = serializers.SerializerMethodField()
    reference_range = serializers.SerializerMethodField()
    sub_tests = LabSubTestSerializer(many=True, read_only=True)

    class Meta:
        model = LabTest
        fields = [
            'id',
            'code',
            'name',
            'price_in_paise',
            'price',
            'reference_range',
            'is_panel',
            'parent_test',
            'sub_tests',
            'is_active',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields

    def get_price(self, obj):
        return obj.price_in_paise / 100

    def get_reference_range(self, obj):
        return {
            'min': obj.reference_min,
            'max': obj.reference_max,
            'unit': obj.reference_unit,
        }


class ReferenceRangeSerializer(serializers.Serializer):
    min = serializers.FloatField(required=False, allow_null=True)
    max = serializers.FloatField(required=False, allow_null=True)
    unit = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=32)


class LabTestWriteSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=200, required=False)
    code = serializers.CharField(max_length=32, required=False)
    # rupees
    price = serializers.DecimalField(max_digits=12, decimal_places=2, required=False)
    reference_range = ReferenceRangeSerializer(required=False)
    is_panel = serializers.BooleanField(required=False)
    parent_test_id = serializers.IntegerField(required=False, allow_null=True)
    is_active = serializers.BooleanField(required=False)
