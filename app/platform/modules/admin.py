"""
Django Admin for module registry models
"""

from django.contrib import admin

from .models import MasterModule, WorkspaceModule
from .services.catalog import invalidate_catalog_cache


@admin.register(MasterModule)
class MasterModuleAdmin(admin.ModelAdmin):
    list_display = ['name', 'module_code', 'category', 'status', 'version', 'install_count', 'featured', 'active', 'display_order']
    list_filter = ['category', 'status', 'required_tier', 'complexity', 'featured', 'active']
    search_fields = ['name', 'module_code', 'description']
    readonly_fields = ['id', 'install_count', 'created_at', 'updated_at']
    ordering = ['display_order', 'name']
    fieldsets = (
        ('Basic Information', {
            'fields': ('module_code', 'name', 'tagline', 'description', 'category', 'version')
        }),
        ('Availability', {
            'fields': ('status', 'active', 'required_tier', 'required_role', 'complexity')
        }),
        ('Configuration', {
            'fields': ('configuration', 'business_relevance', 'ui_metadata', 'route_info')
        }),
        ('Marketplace', {
            'fields': ('provider', 'support_email', 'documentation_url', 'size_mb', 'featured', 'display_order',
                       'install_count', 'rating', 'rating_count', 'release_notes')
        }),
        ('Timestamps', {
            'fields': ('id', 'last_updated_at', 'created_at', 'updated_at')
        }),
    )

    def get_readonly_fields(self, request, obj=None):
        fields = list(super().get_readonly_fields(request, obj))
        if obj is not None:
            fields.append('module_code')
        return fields

    def save_model(self, request, obj, form, change):
        super().save_model(request, obj, form, change)
        invalidate_catalog_cache()


@admin.register(WorkspaceModule)
class WorkspaceModuleAdmin(admin.ModelAdmin):
    list_display = ['workspace_id', 'master_module', 'status', 'enabled', 'installed_version', 'display_order', 'installed_at']
    list_filter = ['status', 'enabled']
    search_fields = ['workspace_id', 'master_module__module_code', 'master_module__name']
    readonly_fields = ['id', 'workspace_id', 'master_module', 'installed_at', 'installed_by', 'installed_by_name', 'created_at', 'updated_at']
    list_select_related = ['master_module']
    ordering = ['workspace_id', 'display_order']
