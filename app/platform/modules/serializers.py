"""Serializers for module registry."""
from rest_framework import serializers

from .constants import ModuleCategory, ModuleComplexity, ModuleStatus, SubscriptionTier
from .models import MasterModule, WorkspaceModule

CONFIGURATION_LIST_KEYS = ("required_permissions", "optional_permissions", "dependencies", "conflicts_with")


class MasterModuleSerializer(serializers.ModelSerializer):
    # Plain field so a taken code reaches the service as MODULE_CODE_EXISTS.
    module_code = serializers.CharField(max_length=100)

    class Meta:
        model = MasterModule
        fields = "__all__"
        read_only_fields = ["id", "install_count", "rating_count", "created_at", "updated_at", "last_updated_at"]

    def validate_configuration(self, value):
        if not isinstance(value, dict):
            raise serializers.ValidationError("configuration must be an object.")
        for key in CONFIGURATION_LIST_KEYS:
            items = value.get(key, [])
            if not isinstance(items, list) or not all(isinstance(i, str) for i in items):
                raise serializers.ValidationError(f"configuration.{key} must be a list of strings.")
        if "custom_settings" in value and not isinstance(value["custom_settings"], dict):
            raise serializers.ValidationError("configuration.custom_settings must be an object.")
        return value


class MasterModuleSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = MasterModule
        fields = [
            "id", "module_code", "name", "tagline", "category", "status", "version",
            "required_tier", "complexity", "featured", "install_count",
        ]


class WorkspaceModuleSerializer(serializers.ModelSerializer):
    module_code = serializers.CharField(read_only=True)
    name = serializers.CharField(source="effective_name", read_only=True)
    description = serializers.CharField(source="effective_description", read_only=True)
    icon = serializers.CharField(source="effective_icon", read_only=True)
    primary_color = serializers.CharField(source="effective_color", read_only=True)
    category = serializers.CharField(source="effective_category", read_only=True)
    master_module = MasterModuleSummarySerializer(read_only=True)
    health_score = serializers.SerializerMethodField()
    needs_attention = serializers.SerializerMethodField()
    can_be_updated = serializers.SerializerMethodField()

    class Meta:
        model = WorkspaceModule
        fields = [
            "id", "workspace_id", "module_code", "name", "description", "icon", "primary_color", "category",
            "master_module", "status", "enabled", "installed_version", "installed_at", "installed_by",
            "installed_by_name", "last_updated_at", "last_updated_by", "display_order", "settings",
            "usage_metrics", "health_score", "needs_attention", "can_be_updated",
        ]
        read_only_fields = fields

    def get_health_score(self, obj):
        return obj.health_score()

    def get_needs_attention(self, obj):
        return obj.needs_attention(self.context.get("enabled_codes"))

    def get_can_be_updated(self, obj):
        return obj.can_be_updated()


# ----------------------------------------------------------------------
# Request payloads
# ----------------------------------------------------------------------
class CatalogFilterSerializer(serializers.Serializer):
    category = serializers.ChoiceField(choices=[c.value for c in ModuleCategory], required=False)
    status = serializers.ChoiceField(choices=[s.value for s in ModuleStatus], required=False)
    complexity = serializers.ChoiceField(choices=[c.value for c in ModuleComplexity], required=False)
    tier = serializers.ChoiceField(choices=[t.value for t in SubscriptionTier], required=False)
    featured = serializers.BooleanField(required=False, allow_null=True, default=None)
    active = serializers.BooleanField(required=False, allow_null=True, default=None)
    page = serializers.IntegerField(required=False, min_value=1, default=1)
    page_size = serializers.IntegerField(required=False, min_value=1)


class BulkStatusSerializer(serializers.Serializer):
    module_ids = serializers.ListField(child=serializers.CharField(), allow_empty=False)
    status = serializers.ChoiceField(choices=[s.value for s in ModuleStatus])


class ReorderItemSerializer(serializers.Serializer):
    module_id = serializers.CharField()
    display_order = serializers.IntegerField()


class ReorderSerializer(serializers.Serializer):
    items = ReorderItemSerializer(many=True, allow_empty=False)

    def to_pairs(self):
        return [(item["module_id"], item["display_order"]) for item in self.validated_data["items"]]


class InstallSerializer(serializers.Serializer):
    module_code = serializers.CharField(max_length=100)


class ConfigureSerializer(serializers.Serializer):
    settings = serializers.DictField()


class CatalogViewQuerySerializer(serializers.Serializer):
    category = serializers.CharField(required=False, allow_blank=True)
    include_disabled = serializers.BooleanField(required=False, default=False)
