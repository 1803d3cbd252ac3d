"""
Doctor directory views.

Contains:
- ReferralDoctorListCreateView / ReferralDoctorDetailView
- ClinicDoctorListCreateView / ClinicDoctorDetailView
- DoctorContactSearchView: look up both directories by phone/email
"""

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from healthhub_backend.core.mixins import error_response
from healthhub_backend.doctors.exceptions import DoctorError
from healthhub_backend.doctors.permissions import DoctorPermission
from healthhub_backend.doctors.serializers import (
    ClinicDoctorSerializer,
    ClinicDoctorWriteSerializer,
    ReferralDoctorSerializer,
    ReferralDoctorWriteSerializer,
)
from healthhub_backend.doctors.services import directory


def _flag(request, name):
    return request.query_params.get(name, '').lower() in ('1', 'true', 'yes')


class _DoctorListCreateView(APIView):
    permission_classes = [DoctorPermission]

    read_serializer = None
    write_serializer = None
    list_doctors = None
    create_doctor = None

    def get(self, request, *args, **kwargs):
        doctors = self.list_doctors(include_inactive=_flag(request, 'include_inactive'))
        return Response(self.read_serializer(doctors, many=True).data)

    def post(self, request, *args, **kwargs):
        serializer = self.write_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            doctor = self.create_doctor(data=serializer.validated_data, user=request.user, request=request)
        except DoctorError as e:
            return error_response(e)
        return Response(self.read_serializer(doctor).data, status=status.HTTP_201_CREATED)


class _DoctorDetailView(APIView):
    permission_classes = [DoctorPermission]

    read_serializer = None
    write_serializer = None
    get_doctor = None
    update_doctor = None
    deactivate_doctor = None

    def get(self, request, pk, *args, **kwargs):
        try:
            doctor = self.get_doctor(pk)
        except DoctorError as e:
            return error_response(e)
        return Response(self.read_serializer(doctor).data)

    def patch(self, request, pk, *args, **kwargs):
        serializer = self.write_serializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        try:
            doctor = self.update_doctor(
                doctor=self.get_doctor(pk),
                data=serializer.validated_data,
                user=request.user,
                request=request,
            )
        except DoctorError as e:
            return error_response(e)
        return Response(self.read_serializer(doctor).data)

    def delete(self, request, pk, *args, **kwargs):
        try:
            doctor = self.deactivate_doctor(doctor=self.get_doctor(pk), user=request.user, request=request)
        except DoctorError as e:
            return error_response(e)
        return Response(self.read_serializer(doctor).data)


class ReferralDoctorListCreateView(_DoctorListCreateView):
    """GET/POST /api/referral-doctors/"""

    read_serializer = ReferralDoctorSerializer
    write_serializer = ReferralDoctorWriteSerializer
    list_doctors = staticmethod(directory.list_referral_doctors)
    create_doctor = staticmethod(directory.create_referral_doctor)


class ReferralDoctorDetailView(_DoctorDetailView):
    """GET/PATCH/DELETE /api/referral-doctors/<pk>/ (DELETE deactivates)"""

    read_serializer = ReferralDoctorSerializer
    write_serializer = ReferralDoctorWriteSerializer
    get_doctor = staticmethod(directory.get_referral_doctor)
    update_doctor = staticmethod(directory.update_referral_doctor)
    deactivate_doctor = staticmethod(directory.deactivate_referral_doctor)


class ClinicDoctorListCreateView(_DoctorListCreateView):
    """GET/POST /api/clinic-doctors/"""

    read_serializer = ClinicDoctorSerializer
    write_serializer = ClinicDoctorWriteSerializer
    list_doctors = staticmethod(directory.list_clinic_doctors)
    create_doctor = staticmethod(directory.create_clinic_doctor)


class ClinicDoctorDetailView(_DoctorDetailView):
    """GET/PATCH/DELETE /api/clinic-doctors/<pk>/ (DELETE deactivates)"""

    read_serializer = ClinicDoctorSerializer
    write_serializer = ClinicDoctorWriteSerializer
    get_doctor = staticmethod(directory.get_clinic_doctor)
    update_doctor = staticmethod(directory.update_clinic_doctor)
    deactivate_doctor = staticmethod(directory.deactivate_clinic_doctor)


class DoctorContactSearchView(APIView):
    """GET /api/doctors/search-by-contact/?phone=&email="""

    permission_classes = [DoctorPermission]

    def get(self, request, *args, **kwargs):
        found = directory.search_doctors_by_contact(
            phone=request.query_params.get('phone'),
            email=request.query_params.get('email'),
        )
        return Response({
            'referral_doctors': ReferralDoctorSerializer(found['referral_doctors'], many=True).data,
            'clinic_doctors': ClinicDoctorSerializer(found['clinic_doctors'], many=True).data,
        })
