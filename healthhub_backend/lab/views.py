"""Lab test catalogue views."""

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from healthhub_backend.core.mixins import error_response
from healthhub_backend.lab.exceptions import LabError
from healthhub_backend.lab.permissions import LabTestPermission
from healthhub_backend.lab.serializers import LabTestSerializer, LabTestWriteSerializer
from healthhub_backend.lab.services.catalogue import (
    create_lab_test,
    deactivate_lab_test,
    get_lab_test,
    list_lab_tests,
    update_lab_test,
)


class LabTestListCreateView(APIView):
    """GET /api/lab-tests/?include_inactive= ; POST /api/lab-tests/"""

    permission_classes = [LabTestPermission]

    def get(self, request, *args, **kwargs):
        include_inactive = request.query_params.get('include_inactive', '').lower() == 'true'
        return Response(LabTestSerializer(list_lab_tests(include_inactive=include_inactive), many=True).data)

    def post(self, request, *args, **kwargs):
        serializer = LabTestWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            test = create_lab_test(data=serializer.validated_data, user=request.user, request=request)
        except LabError as e:
            return error_response(e)
        return Response(LabTestSerializer(test).data, status=status.HTTP_201_CREATED)


class LabTestDetailView(APIView):
    """GET/PATCH/DELETE /api/lab-tests/<pk>/ (DELETE deactivates)"""

    permission_classes = [LabTestPermission]

    def get(self, request, pk, *args, **kwargs):
        try:
            test = get_lab_test(pk)
        except LabError as e:
            return error_response(e)
        return Response(LabTestSerializer(test).data)

    def patch(self, request, pk, *args, **kwargs):
        serializer = LabTestWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            test = update_lab_test(
                test=get_lab_test(pk),
                data=serializer.validated_data,
                user=request.user,
                request=request,
            )
        except LabError as e:
            return error_response(e)
        return Response(LabTestSerializer(test).data)

    def delete(self, request, pk, *args, **kwargs):
        try:
            test = deactivate_lab_test(test=get_lab_test(pk), user=request.user, request=request)
        except LabError as e:
            return error_response(e)
        return Response({'id': test.pk, 'detail': 'Lab test deactivated'})
