"""
Visit views.

Contains:
- DiagnosticVisitListCreateView / DiagnosticVisitDetailView
- DiagnosticVisitTestsView / DiagnosticVisitTestDetailView: add and remove test orders
- ClinicVisitListCreateView / ClinicVisitDetailView
- BillPrintView: printable bill data

All visit routes are scoped to request.user.active_branch (400 NO_BRANCH
without one), except the cross-branch patient filter on the diagnostic list
and bill printing.
"""

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from healthhub_backend.core.mixins import BranchContextMixin, error_response
from healthhub_backend.visits.exceptions import VisitError
from healthhub_backend.visits.models import TestOrder
from healthhub_backend.visits.permissions import VisitPermission
from healthhub_backend.visits.serializers import (
    AddTestsSerializer,
    ClinicVisitCreateSerializer,
    ClinicVisitSerializer,
    DiagnosticVisitCreateSerializer,
    DiagnosticVisitSerializer,
    TestOrderSerializer,
    VisitUpdateSerializer,
)
from healthhub_backend.visits.services import billing, clinic, diagnostic


class DiagnosticVisitListCreateView(BranchContextMixin, APIView):
    """GET /api/visits/diagnostic/?status=&patient_id= ; POST /api/visits/diagnostic/"""

    permission_classes = [VisitPermission]

    def get(self, request, *args, **kwargs):
        visits = diagnostic.list_diagnostic_visits(
            branch=self.get_branch(),
            status=request.query_params.get('status') or None,
            patient_id=request.query_params.get('patient_id') or None,
        )
        return Response(DiagnosticVisitSerializer(visits, many=True).data)

    def post(self, request, *args, **kwargs):
        branch = self.get_branch()
        serializer = DiagnosticVisitCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            visit = diagnostic.create_diagnostic_visit(
                branch=branch,
                user=request.user,
                request=request,
                **serializer.validated_data,
            )
            visit = diagnostic.get_diagnostic_visit(branch=branch, visit_id=visit.pk)
        except VisitError as e:
            return error_response(e)
        return Response(DiagnosticVisitSerializer(visit).data, status=status.HTTP_201_CREATED)


class DiagnosticVisitDetailView(BranchContextMixin, APIView):
    """GET/PATCH /api/visits/diagnostic/<pk>/"""

    permission_classes = [VisitPermission]

    def get(self, request, pk, *args, **kwargs):
        try:
            visit = diagnostic.get_diagnostic_visit(branch=self.get_branch(), visit_id=pk)
        except VisitError as e:
            return error_response(e)
        return Response(DiagnosticVisitSerializer(visit).data)

    def patch(self, request, pk, *args, **kwargs):
        serializer = VisitUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            visit = diagnostic.update_diagnostic_visit(
                visit=diagnostic.get_diagnostic_visit(branch=self.get_branch(), visit_id=pk),
                user=request.user,
                request=request,
                **serializer.validated_data,
            )
        except VisitError as e:
            return error_response(e)
        return Response(DiagnosticVisitSerializer(visit).data)


class DiagnosticVisitTestsView(BranchContextMixin, APIView):
    """POST /api/visits/diagnostic/<pk>/tests/"""

    permission_classes = [VisitPermission]

    def post(self, request, pk, *args, **kwargs):
        serializer = AddTestsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            visit = diagnostic.get_diagnostic_visit(branch=self.get_branch(), visit_id=pk)
            orders = diagnostic.add_tests_to_visit(
                visit=visit,
                test_ids=serializer.validated_data['test_ids'],
                user=request.user,
                request=request,
            )
        except VisitError as e:
            return error_response(e)
        return Response(
            {
                'added_count': len(orders),
                'new_total': visit.total_amount_in_paise / 100,
                'test_orders': TestOrderSerializer(
                    TestOrder.objects.using('default').filter(visit=visit), many=True
                ).data,
            },
            status=status.HTTP_201_CREATED,
        )


class DiagnosticVisitTestDetailView(BranchContextMixin, APIView):
    """DELETE /api/visits/diagnostic/<pk>/tests/<order_id>/"""

    permission_classes = [VisitPermission]

    def delete(self, request, pk, order_id, *args, **kwargs):
        try:
            total = diagnostic.remove_test_from_visit(
                visit=diagnostic.get_diagnostic_visit(branch=self.get_branch(), visit_id=pk),
                test_order_id=order_id,
                user=request.user,
                request=request,
            )
        except VisitError as e:
            return error_response(e)
        return Response({'detail': 'Test removed', 'new_total': total / 100})


class ClinicVisitListCreateView(BranchContextMixin, APIView):
    """GET /api/visits/clinic/?status=&doctor_id= ; POST /api/visits/clinic/"""

    permission_classes = [VisitPermission]

    def get(self, request, *args, **kwargs):
        visits = clinic.list_clinic_visits(
            branch=self.get_branch(),
            status=request.query_params.get('status') or None,
            doctor_id=request.query_params.get('doctor_id') or None,
        )
        return Response(ClinicVisitSerializer(visits, many=True).data)

    def post(self, request, *args, **kwargs):
        branch = self.get_branch()
        serializer = ClinicVisitCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            visit = clinic.create_clinic_visit(
                branch=branch,
                user=request.user,
                request=request,
                **serializer.validated_data,
            )
            visit = clinic.get_clinic_visit(branch=branch, visit_id=visit.pk)
        except VisitError as e:
            return error_response(e)
        return Response(ClinicVisitSerializer(visit).data, status=status.HTTP_201_CREATED)


class ClinicVisitDetailView(BranchContextMixin, APIView):
    """GET/PATCH/DELETE /api/visits/clinic/<pk>/ (DELETE cancels)"""

    permission_classes = [VisitPermission]

    def _visit(self, pk):
        return clinic.get_clinic_visit(branch=self.get_branch(), visit_id=pk)

    def get(self, request, pk, *args, **kwargs):
        try:
            visit = self._visit(pk)
        except VisitError as e:
            return error_response(e)
        return Response(ClinicVisitSerializer(visit).data)

    def patch(self, request, pk, *args, **kwargs):
        serializer = VisitUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            visit = clinic.update_clinic_visit(
                visit=self._visit(pk),
                user=request.user,
                request=request,
                **serializer.validated_data,
            )
        except VisitError as e:
            return error_response(e)
        return Response(ClinicVisitSerializer(visit).data)

    def delete(self, request, pk, *args, **kwargs):
        try:
            visit = clinic.cancel_clinic_visit(visit=self._visit(pk), user=request.user, request=request)
        except VisitError as e:
            return error_response(e)
        return Response({'id': visit.pk, 'status': visit.status})


class BillPrintView(APIView):
    """GET /api/bills/<domain>/<visit_id>/ - domain is 'diagnostic' or 'clinic'."""

    permission_classes = [VisitPermission]

    def get(self, request, domain, visit_id, *args, **kwargs):
        try:
            visit = billing.get_bill_visit(domain=domain, visit_id=visit_id)
            data = billing.get_bill_print_data(domain=domain, visit=visit)
        except VisitError as e:
            return error_response(e)
        return Response(data)
