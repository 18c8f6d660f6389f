from rest_framework.routers import DefaultRouter

from .views import MasterModuleAdminViewSet, WorkspaceModuleViewSet

router = DefaultRouter()
router.register(r"modules/master", MasterModuleAdminViewSet, basename="master-modules")
router.register(r"modules/workspace", WorkspaceModuleViewSet, basename="workspace-modules")

urlpatterns = router.urls
