"""
Patient views.

Registration and updates go through patients.services.registration so the
advisory lock, duplicate check, change log and audit entry are applied in
one place. Service errors are translated via error_response().
"""

from django.shortcuts import get_object_or_404

from rest_framework import generics, status
from rest_framework.response import Response
from rest_framework.views import APIView

from healthhub_backend.core.mixins import error_response
from healthhub_backend.patients.exceptions import PatientError
from healthhub_backend.patients.models import Patient
from healthhub_backend.patients.permissions import PatientPermission
from healthhub_backend.patients.serializers import (
    Patient360Serializer,
    PatientChangeLogSerializer,
    PatientCreateSerializer,
    PatientMatchSerializer,
    PatientReadSerializer,
    PatientUpdateSerializer,
)
from healthhub_backend.patients.services.matching import (
    check_patient_exists,
    find_patients_by_identifier,
)
from healthhub_backend.patients.services.overview import get_patient_360
from healthhub_backend.patients.services.registration import (
    create_patient,
    get_change_history,
    update_patient,
)

SEARCH_DEFAULT_LIMIT = 20
SEARCH_MAX_LIMIT = 100


def _patients():
    return Patient.objects.using('default').prefetch_related('identifiers')


class PatientListCreateView(generics.ListCreateAPIView):
    """GET /api/patients/ - most recent patients; POST - register a patient."""

    permission_classes = [PatientPermission]
    serializer_class = PatientReadSerializer

    def get_queryset(self):
        return _patients()[:SEARCH_DEFAULT_LIMIT]

    def create(self, request, *args, **kwargs):
        serializer = PatientCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        force_duplicate = data.pop('force_duplicate', False)
        if 'identifiers' in data:
            data['identifiers'] = [dict(i) for i in data['identifiers']]

        try:
            patient = create_patient(
                data=data,
                user=request.user,
                force_duplicate=force_duplicate,
                request=request,
            )
        except PatientError as e:
            return error_response(e)

        patient = _patients().get(pk=patient.pk)
        return Response(PatientReadSerializer(patient).data, status=status.HTTP_201_CREATED)


class PatientSearchView(APIView):
    """GET /api/patients/search/?phone=&email=&name=&strict=&limit="""

    permission_classes = [PatientPermission]

    def get(self, request, *args, **kwargs):
        params = request.query_params
        try:
            limit = int(params.get('limit', SEARCH_DEFAULT_LIMIT))
        except (TypeError, ValueError):
            limit = SEARCH_DEFAULT_LIMIT
        limit = max(1, min(limit, SEARCH_MAX_LIMIT))

        matches = find_patients_by_identifier(
            phone=params.get('phone') or None,
            email=params.get('email') or None,
            name=params.get('name') or None,
            strict=params.get('strict', '').lower() in ('1', 'true', 'yes'),
            limit=limit,
        )
        return Response(PatientMatchSerializer(matches, many=True).data)


class PatientCheckView(APIView):
    """GET /api/patients/check/?phone=&email="""

    permission_classes = [PatientPermission]

    def get(self, request, *args, **kwargs):
        exists = check_patient_exists(
            phone=request.query_params.get('phone') or None,
            email=request.query_params.get('email') or None,
        )
        return Response({'exists': exists})


class PatientDetailView(APIView):
    """GET/PATCH /api/patients/<pk>/"""

    permission_classes = [PatientPermission]

    def get(self, request, pk, *args, **kwargs):
        patient = get_object_or_404(_patients(), pk=pk)
        return Response(PatientReadSerializer(patient).data)

    def patch(self, request, pk, *args, **kwargs):
        patient = get_object_or_404(_patients(), pk=pk)
        serializer = PatientUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        change_reason = data.pop('change_reason', None)

        try:
            patient = update_patient(
                patient=patient,
                data=data,
                user=request.user,
                change_reason=change_reason,
                request_id=request.headers.get('X-Request-ID'),
                request=request,
            )
        except PatientError as e:
            return error_response(e)

        return Response(PatientReadSerializer(patient).data)


class Patient360View(APIView):
    """GET /api/patients/<pk>/360/"""

    permission_classes = [PatientPermission]

    def get(self, request, pk, *args, **kwargs):
        patient = get_object_or_404(_patients(), pk=pk)
        return Response(Patient360Serializer(get_patient_360(patient)).data)


class PatientHistoryView(generics.ListAPIView):
    """GET /api/patients/<pk>/history/ - change log, newest first."""

    permission_classes = [PatientPermission]
    serializer_class = PatientChangeLogSerializer

    def get_queryset(self):
        patient = get_object_or_404(Patient.objects.using('default'), pk=self.kwargs['pk'])
        return get_change_history(patient)
