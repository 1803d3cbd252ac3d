"""
Payout views.

Contains:
- PayoutListView: branch ledger with filters
- PayoutDeriveView: derive (owner only), 201 new / 200 existing
- PayoutDetailView: ledger row with recomputed line items
- PayoutMarkPaidView
- PayoutReferralDoctorsView / PayoutClinicDoctorsView: active doctors for the derive form
"""

from django.utils.dateparse import parse_date
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from healthhub_backend.core.mixins import BranchContextMixin, error_response
from healthhub_backend.doctors.models import ClinicDoctor, ReferralDoctor
from healthhub_backend.payouts.exceptions import PayoutError
from healthhub_backend.payouts.permissions import PayoutDerivePermission, PayoutPermission
from healthhub_backend.payouts.serializers import (
    DerivePayoutSerializer,
    MarkPaidSerializer,
    PayoutClinicDoctorSerializer,
    PayoutDetailSerializer,
    PayoutReferralDoctorSerializer,
    PayoutSummarySerializer,
)
from healthhub_backend.payouts.services import ledger


def _bool_param(value):
    if value is None or value == '':
        return None
    return value.lower() in ('1', 'true', 'yes')


def _detail_response(detail, status_code=status.HTTP_200_OK):
    serializer = PayoutDetailSerializer(detail['payout'], context={'line_items': detail['line_items']})
    return Response(serializer.data, status=status_code)


class PayoutListView(BranchContextMixin, APIView):
    """GET /api/payouts/?doctor_type=&is_paid=&start_date=&end_date="""

    permission_classes = [PayoutPermission]

    def get(self, request, *args, **kwargs):
        params = request.query_params
        payouts = ledger.list_payouts(
            branch=self.get_branch(),
            doctor_type=params.get('doctor_type') or None,
            is_paid=_bool_param(params.get('is_paid')),
            start_date=parse_date(params.get('start_date') or '') or None,
            end_date=parse_date(params.get('end_date') or '') or None,
        )
        return Response(PayoutSummarySerializer(payouts, many=True).data)


class PayoutDeriveView(BranchContextMixin, APIView):
    """POST /api/payouts/derive/"""

    permission_classes = [PayoutDerivePermission]

    def post(self, request, *args, **kwargs):
        serializer = DerivePayoutSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            detail, is_new = ledger.derive_payout(
                doctor_type=data['doctor_type'],
                doctor_id=data['doctor_id'],
                branch=self.get_branch(),
                period_start=data['period_start_date'],
                period_end=data['period_end_date'],
                user=request.user,
                request=request,
            )
        except PayoutError as e:
            return error_response(e)
        return _detail_response(detail, status.HTTP_201_CREATED if is_new else status.HTTP_200_OK)


class PayoutDetailView(BranchContextMixin, APIView):
    """GET /api/payouts/<pk>/"""

    permission_classes = [PayoutPermission]

    def get(self, request, pk, *args, **kwargs):
        try:
            payout = ledger.get_payout(branch=self.get_branch(), payout_id=pk)
        except PayoutError as e:
            return error_response(e)
        return _detail_response(ledger.get_payout_detail(payout))


class PayoutMarkPaidView(BranchContextMixin, APIView):
    """POST /api/payouts/<pk>/mark-paid/"""

    permission_classes = [PayoutPermission]

    def post(self, request, pk, *args, **kwargs):
        serializer = MarkPaidSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            payout = ledger.mark_payout_paid(
                payout=ledger.get_payout(branch=self.get_branch(), payout_id=pk),
                user=request.user,
                request=request,
                **serializer.validated_data,
            )
        except PayoutError as e:
            return error_response(e)
        return _detail_response(ledger.get_payout_detail(payout))


class PayoutReferralDoctorsView(APIView):
    """GET /api/payouts/doctors/referral/"""

    permission_classes = [PayoutPermission]

    def get(self, request, *args, **kwargs):
        doctors = ReferralDoctor.objects.using('default').filter(is_active=True).order_by('name')
        return Response(PayoutReferralDoctorSerializer(doctors, many=True).data)


class PayoutClinicDoctorsView(APIView):
    """GET /api/payouts/doctors/clinic/"""

    permission_classes = [PayoutPermission]

    def get(self, request, *args, **kwargs):
        doctors = ClinicDoctor.objects.using('default').filter(is_active=True).order_by('name')
        return Response(PayoutClinicDoctorSerializer(doctors, many=True).data)
