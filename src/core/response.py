"""Success envelope: every 2xx body is ``{"data": ..., "errors": []}``."""

from typing import Any

from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework.viewsets import ViewSet


def api_response(data: Any, status: int = 200) -> Response:
    return Response({"data": data, "errors": []}, status=status)


def _is_enveloped(payload: Any) -> bool:
    return isinstance(payload, dict) and payload.keys() == {"data", "errors"}


class EnvelopeMixin:
    """Wrap successful DRF responses that are not already enveloped.

    Errors are enveloped by ``core.exceptions.custom_exception_handler``;
    204 responses keep an empty body.
    """

    def finalize_response(self, request, response, *args, **kwargs):  # type: ignore[override]
        if (
            getattr(response, "data", None) is not None
            and response.status_code < 400
            and response.status_code != 204
            and not _is_enveloped(response.data)
        ):
            response.data = {"data": response.data, "errors": []}
        return super().finalize_response(request, response, *args, **kwargs)  # type: ignore[attr-defined]


class BaseAPIView(EnvelopeMixin, APIView):
    pass


class BaseServiceViewSet(EnvelopeMixin, ViewSet):
    """ViewSet whose actions call service functions rather than a queryset.

    Actions build an ``Identity`` from ``request.user`` and let the service
    layer raise ``core.errors`` on denial or bad input.
    """
