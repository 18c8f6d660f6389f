"""Module registry viewsets."""
import logging
from dataclasses import asdict

from rest_framework import viewsets, permissions, status
from rest_framework.decorators import action
from drf_spectacular.utils import extend_schema, OpenApiParameter

from app.utils.response import api_response
from app.utils.exception_handler import format_validation_error, module_error_response
from .errors import ModuleError
from .serializers import (
    BulkStatusSerializer,
    CatalogFilterSerializer,
    CatalogViewQuerySerializer,
    ConfigureSerializer,
    InstallSerializer,
    MasterModuleSerializer,
    ReorderSerializer,
    WorkspaceModuleSerializer,
)
from .services import CatalogService, InstallationService, get_catalog_view
from .stores import InstallationStore
from .tenancy import Actor, RequestTenantContext

logger = logging.getLogger(__name__)

WORKSPACE_HEADER = OpenApiParameter(
    name="X-Workspace-ID",
    location=OpenApiParameter.HEADER,
    required=False,
    description="Active workspace; must match the workspace_id token claim when the token carries one",
)


class ModuleViewSetMixin:

    def _handle_exception(self, exc, where=""):
        from rest_framework.exceptions import ValidationError
        from rest_framework.serializers import ValidationError as SerializerValidationError

        if isinstance(exc, ModuleError):
            logger.warning(f"{where}: {exc}")
            return module_error_response(exc)
        if isinstance(exc, (ValidationError, SerializerValidationError)):
            logger.info(f"{where}: {exc}")
            return api_response(
                status_code=status.HTTP_400_BAD_REQUEST,
                status="failure",
                data={},
                error_code="VALIDATION_ERROR",
                error_message=format_validation_error(exc.detail),
            )
        logger.exception(f"{where}: {exc}")
        return api_response(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            status="failure",
            data={},
            error_code="SERVER_ERROR",
            error_message=str(exc),
        )

    def _workspace_id(self, request):
        return RequestTenantContext(request).current_tenant()

    def _actor(self, request):
        return Actor.from_user(request.user)


@extend_schema(tags=["Module Catalog Admin"])
class MasterModuleAdminViewSet(ModuleViewSetMixin, viewsets.ViewSet):
    """Super-admin management of the global module catalog."""
    serializer_class = MasterModuleSerializer
    permission_classes = [permissions.IsAdminUser]

    def get_service(self):
        return CatalogService()

    @extend_schema(summary="List catalog modules", parameters=[CatalogFilterSerializer])
    def list(self, request):
        try:
            params = CatalogFilterSerializer(data=request.query_params.dict())
            params.is_valid(raise_exception=True)
            filters = dict(params.validated_data)
            page_number = filters.pop("page", 1)
            page_size = filters.pop("page_size", None)

            page = self.get_service().list_catalog(filters, page=page_number, page_size=page_size)
            return api_response(200, "success", {
                "results": MasterModuleSerializer(page.object_list, many=True).data,
                "count": page.paginator.count,
                "page": page.number,
                "page_size": page.paginator.per_page,
                "total_pages": page.paginator.num_pages,
            })
        except Exception as exc:
            return self._handle_exception(exc, "list_catalog")

    @extend_schema(summary="Get catalog module")
    def retrieve(self, request, pk=None):
        try:
            module = self.get_service().get_module(pk)
            return api_response(200, "success", MasterModuleSerializer(module).data)
        except Exception as exc:
            return self._handle_exception(exc, "retrieve_module")

    @extend_schema(summary="Get catalog module by code")
    @action(detail=False, methods=["get"], url_path=r"code/(?P<module_code>[^/.]+)")
    def by_code(self, request, module_code=None):
        try:
            module = self.get_service().get_module_by_code(module_code)
            return api_response(200, "success", MasterModuleSerializer(module).data)
        except Exception as exc:
            return self._handle_exception(exc, "module_by_code")

    @extend_schema(summary="Create catalog module", request=MasterModuleSerializer)
    def create(self, request):
        try:
            serializer = MasterModuleSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            module = self.get_service().create_module(dict(serializer.validated_data))
            return api_response(201, "success", MasterModuleSerializer(module).data)
        except Exception as exc:
            return self._handle_exception(exc, "create_module")

    @extend_schema(summary="Update catalog module", request=MasterModuleSerializer)
    def partial_update(self, request, pk=None):
        try:
            serializer = MasterModuleSerializer(data=request.data, partial=True)
            serializer.is_valid(raise_exception=True)
            data = dict(serializer.validated_data)
            data.pop("module_code", None)
            module = self.get_service().update_module(pk, data)
            return api_response(200, "success", MasterModuleSerializer(module).data)
        except Exception as exc:
            return self._handle_exception(exc, "update_module")

    @extend_schema(summary="Delete catalog module")
    def destroy(self, request, pk=None):
        try:
            self.get_service().delete_module(pk)
            return api_response(200, "success", {"deleted": True})
        except Exception as exc:
            return self._handle_exception(exc, "delete_module")

    @extend_schema(
        summary="Search catalog modules",
        parameters=[OpenApiParameter(name="q", required=True, description="Keyword matched against name and description")],
    )
    @action(detail=False, methods=["get"], url_path="search")
    def search(self, request):
        try:
            modules = self.get_service().search_catalog(request.query_params.get("q", ""))
            data = MasterModuleSerializer(modules, many=True).data
            return api_response(200, "success", {"results": data, "count": len(data)})
        except Exception as exc:
            return self._handle_exception(exc, "search_catalog")

    @extend_schema(summary="Catalog statistics")
    @action(detail=False, methods=["get"], url_path="statistics")
    def statistics(self, request):
        try:
            return api_response(200, "success", self.get_service().statistics())
        except Exception as exc:
            return self._handle_exception(exc, "catalog_statistics")

    @extend_schema(summary="Set status of several modules", request=BulkStatusSerializer)
    @action(detail=False, methods=["post"], url_path="bulk-status")
    def bulk_status(self, request):
        try:
            serializer = BulkStatusSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            modules = self.get_service().bulk_set_status(
                serializer.validated_data["module_ids"], serializer.validated_data["status"]
            )
            return api_response(200, "success", {"results": MasterModuleSerializer(modules, many=True).data})
        except Exception as exc:
            return self._handle_exception(exc, "bulk_status")

    @extend_schema(summary="Reorder catalog modules", request=ReorderSerializer)
    @action(detail=False, methods=["post"], url_path="reorder")
    def reorder(self, request):
        try:
            serializer = ReorderSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            modules = self.get_service().reorder(serializer.to_pairs())
            return api_response(200, "success", {"results": MasterModuleSerializer(modules, many=True).data})
        except Exception as exc:
            return self._handle_exception(exc, "reorder_catalog")


@extend_schema(tags=["Workspace Modules"], parameters=[WORKSPACE_HEADER])
class WorkspaceModuleViewSet(ModuleViewSetMixin, viewsets.ViewSet):
    """Install, uninstall and manage modules inside the caller's workspace."""
    serializer_class = WorkspaceModuleSerializer
    permission_classes = [permissions.IsAuthenticated]
    lookup_value_regex = r"[^/]+"

    def get_service(self):
        return InstallationService()

    def _serialize(self, records, workspace_id, many=False):
        enabled_codes = InstallationStore().enabled_codes(workspace_id) if workspace_id else set()
        return WorkspaceModuleSerializer(records, many=many, context={"enabled_codes": enabled_codes}).data

    @extend_schema(
        summary="List installed modules",
        parameters=[OpenApiParameter(name="include_disabled", type=bool, required=False)],
    )
    def list(self, request):
        try:
            workspace_id = self._workspace_id(request)
            include_disabled = request.query_params.get("include_disabled", "false").lower() in ("1", "true", "yes")
            records = self.get_service().list_installed(workspace_id, include_disabled=include_disabled)
            data = self._serialize(records, workspace_id, many=True)
            return api_response(200, "success", {"modules": data, "count": len(data)})
        except Exception as exc:
            return self._handle_exception(exc, "list_installed")

    @extend_schema(summary="Get installed module by id or code")
    def retrieve(self, request, pk=None):
        try:
            workspace_id = self._workspace_id(request)
            record = self.get_service().get_installed_module(workspace_id, pk)
            if record is None:
                return api_response(
                    404, "failure", {},
                    "MODULE_NOT_INSTALLED",
                    f"Module '{pk}' is not installed in this workspace",
                )
            return api_response(200, "success", self._serialize(record, workspace_id))
        except Exception as exc:
            return self._handle_exception(exc, "get_installed_module")

    @extend_schema(summary="Install a module", request=InstallSerializer)
    def create(self, request):
        try:
            serializer = InstallSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            result = self.get_service().install(
                self._workspace_id(request), serializer.validated_data["module_code"], self._actor(request)
            )
            if not result.success:
                return api_response(
                    500, "failure", asdict(result),
                    "MODULE_ACTIVATION_FAILED",
                    result.message,
                )
            return api_response(200 if result.already_installed else 201, "success", asdict(result))
        except Exception as exc:
            return self._handle_exception(exc, "install_module")

    @extend_schema(summary="Uninstall a module")
    def destroy(self, request, pk=None):
        try:
            result = self.get_service().uninstall(self._workspace_id(request), pk, self._actor(request))
            return api_response(200, "success", asdict(result))
        except Exception as exc:
            return self._handle_exception(exc, "uninstall_module")

    @extend_schema(summary="Enable an installed module", request=None)
    @action(detail=True, methods=["post"], url_path="enable")
    def enable(self, request, pk=None):
        return self._set_enabled(request, pk, True)

    @extend_schema(summary="Disable an installed module", request=None)
    @action(detail=True, methods=["post"], url_path="disable")
    def disable(self, request, pk=None):
        return self._set_enabled(request, pk, False)

    def _set_enabled(self, request, pk, enabled):
        try:
            workspace_id = self._workspace_id(request)
            record = self.get_service().set_enabled(workspace_id, pk, enabled, self._actor(request))
            return api_response(200, "success", self._serialize(record, workspace_id))
        except Exception as exc:
            return self._handle_exception(exc, "enable_module" if enabled else "disable_module")

    @extend_schema(summary="Update an installed module to the catalog version", request=None)
    @action(detail=True, methods=["post"], url_path="update")
    def update_version(self, request, pk=None):
        try:
            workspace_id = self._workspace_id(request)
            record = self.get_service().update_module(workspace_id, pk, self._actor(request))
            return api_response(200, "success", self._serialize(record, workspace_id))
        except Exception as exc:
            return self._handle_exception(exc, "update_installed_module")

    @extend_schema(summary="Change workspace settings of an installed module", request=ConfigureSerializer)
    @action(detail=True, methods=["patch"], url_path="settings")
    def configure(self, request, pk=None):
        try:
            serializer = ConfigureSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            workspace_id = self._workspace_id(request)
            record = self.get_service().configure(
                workspace_id, pk, serializer.validated_data["settings"], self._actor(request)
            )
            return api_response(200, "success", self._serialize(record, workspace_id))
        except Exception as exc:
            return self._handle_exception(exc, "configure_module")

    @extend_schema(summary="Reorder installed modules", request=ReorderSerializer)
    @action(detail=False, methods=["post"], url_path="reorder")
    def reorder(self, request):
        try:
            serializer = ReorderSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            workspace_id = self._workspace_id(request)
            records = self.get_service().reorder(workspace_id, serializer.to_pairs(), self._actor(request))
            return api_response(200, "success", {"modules": self._serialize(records, workspace_id, many=True)})
        except Exception as exc:
            return self._handle_exception(exc, "reorder_installed")

    @extend_schema(summary="Module marketplace for the workspace", parameters=[CatalogViewQuerySerializer])
    @action(detail=False, methods=["get"], url_path="catalog")
    def catalog(self, request):
        try:
            params = CatalogViewQuerySerializer(data=request.query_params.dict())
            params.is_valid(raise_exception=True)
            view = get_catalog_view(
                self._workspace_id(request),
                category=params.validated_data.get("category") or None,
                include_disabled=params.validated_data["include_disabled"],
            )
            return api_response(200, "success", view)
        except Exception as exc:
            return self._handle_exception(exc, "catalog_view")
