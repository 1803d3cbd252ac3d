"""Shared view helpers: branch context and service-error translation."""

from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response

from healthhub_backend.core.exceptions import NoActiveBranch, ServiceError
from healthhub_backend.core.utils import require_branch


class BranchRequired(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_code = 'NO_BRANCH'
    default_detail = 'No active branch selected for this user'


class BranchContextMixin:
    """Resolves request.user.active_branch for branch-scoped views."""

    def get_branch(self):
        try:
            return require_branch(self.request.user)
        except NoActiveBranch as e:
            raise BranchRequired(e.to_dict())


def error_response(exc: ServiceError) -> Response:
    return Response(exc.to_dict(), status=exc.status_code)
