"""
Public OpenAPI schema endpoint rendered through the api_response envelope on failure
"""
import logging
from drf_spectacular.views import SpectacularAPIView
from rest_framework import status, permissions
from app.utils.response import api_response

logger = logging.getLogger(__name__)


class CustomSpectacularAPIView(SpectacularAPIView):
    """
    Schema endpoint for the module registry API. No authentication so that
    Swagger/Redoc can load it before the user signs in.
    """
    permission_classes = [permissions.AllowAny]
    authentication_classes = []

    def get(self, request, *args, **kwargs):
        try:
            return super().get(request, *args, **kwargs)
        except Exception as e:
            logger.exception("Error generating OpenAPI schema")
            return api_response(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                status="failure",
                data={},
                error_code="SCHEMA_GENERATION_ERROR",
                error_message=f"Failed to generate API schema: {e}",
            )
