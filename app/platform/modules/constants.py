"""
Module registry constants - catalog enums, lifecycle states and action types.
"""

from enum import Enum


class ModuleStatus(str, Enum):
    """Catalog lifecycle of a master module"""
    DRAFT = "DRAFT"
    ACTIVE = "ACTIVE"
    DEPRECATED = "DEPRECATED"
    RETIRED = "RETIRED"


class WorkspaceModuleStatus(str, Enum):
    """Lifecycle of a module installation inside one workspace"""
    INSTALLING = "INSTALLING"
    ACTIVE = "ACTIVE"
    DISABLED = "DISABLED"
    ERROR = "ERROR"


class ModuleCategory(str, Enum):
    CUSTOMER_MANAGEMENT = "CUSTOMER_MANAGEMENT"
    SALES_MANAGEMENT = "SALES_MANAGEMENT"
    FINANCIAL_MANAGEMENT = "FINANCIAL_MANAGEMENT"
    INVENTORY_MANAGEMENT = "INVENTORY_MANAGEMENT"
    ANALYTICS_REPORTING = "ANALYTICS_REPORTING"
    COMMUNICATION = "COMMUNICATION"
    ADMINISTRATION = "ADMINISTRATION"
    INTEGRATIONS = "INTEGRATIONS"


class SubscriptionTier(str, Enum):
    """Ordered from lowest to highest"""
    FREE = "FREE"
    BASIC = "BASIC"
    PREMIUM = "PREMIUM"
    ENTERPRISE = "ENTERPRISE"


class UserRole(str, Enum):
    """Ordered from lowest to highest access level"""
    VIEWER = "VIEWER"
    EMPLOYEE = "EMPLOYEE"
    MANAGER = "MANAGER"
    ADMIN = "ADMIN"
    OWNER = "OWNER"


class ModuleComplexity(str, Enum):
    ESSENTIAL = "ESSENTIAL"
    STANDARD = "STANDARD"
    ADVANCED = "ADVANCED"
    SPECIALIZED = "SPECIALIZED"


class ModuleActionType(str, Enum):
    INSTALL = "INSTALL"
    UNINSTALL = "UNINSTALL"
    ENABLE = "ENABLE"
    DISABLE = "DISABLE"
    CONFIGURE = "CONFIGURE"
    UPDATE = "UPDATE"


# Gap between consecutive workspace display orders so that modules can be
# slotted in between without renumbering.
DISPLAY_ORDER_STEP = 10

CATEGORY_METADATA = {
    ModuleCategory.CUSTOMER_MANAGEMENT: {
        "display_name": "Customer Management",
        "description": "CRM and customer relationship tools",
        "icon": "people",
    },
    ModuleCategory.SALES_MANAGEMENT: {
        "display_name": "Sales Management",
        "description": "Orders, quotations and sales pipeline",
        "icon": "shopping_cart",
    },
    ModuleCategory.FINANCIAL_MANAGEMENT: {
        "display_name": "Financial Management",
        "description": "Invoicing, billing and tax compliance",
        "icon": "account_balance",
    },
    ModuleCategory.INVENTORY_MANAGEMENT: {
        "display_name": "Inventory Management",
        "description": "Products, stock levels and warehouses",
        "icon": "inventory",
    },
    ModuleCategory.ANALYTICS_REPORTING: {
        "display_name": "Analytics & Reporting",
        "description": "Dashboards, reports and business insights",
        "icon": "analytics",
    },
    ModuleCategory.COMMUNICATION: {
        "display_name": "Communication",
        "description": "Notifications and customer messaging",
        "icon": "notifications",
    },
    ModuleCategory.ADMINISTRATION: {
        "display_name": "Administration",
        "description": "Business profile, users and workspace settings",
        "icon": "admin_panel_settings",
    },
    ModuleCategory.INTEGRATIONS: {
        "display_name": "Integrations",
        "description": "Connectors to third-party systems",
        "icon": "extension",
    },
}

ACTION_METADATA = {
    ModuleActionType.INSTALL: {
        "label": "Install",
        "description": "Add to workspace",
        "requires_confirmation": False,
    },
    ModuleActionType.UNINSTALL: {
        "label": "Uninstall",
        "description": "Remove module from workspace",
        "requires_confirmation": True,
        "confirmation_message": "This will remove {name} from the workspace. Continue?",
    },
    ModuleActionType.ENABLE: {
        "label": "Enable",
        "description": "Re-activate module for workspace users",
        "requires_confirmation": False,
    },
    ModuleActionType.DISABLE: {
        "label": "Disable",
        "description": "Temporarily disable module",
        "requires_confirmation": False,
    },
    ModuleActionType.CONFIGURE: {
        "label": "Configure",
        "description": "Modify module settings",
        "requires_confirmation": False,
    },
    ModuleActionType.UPDATE: {
        "label": "Update",
        "description": "Update module to version {version}",
        "requires_confirmation": True,
        "confirmation_message": "Update {name} to version {version}?",
    },
}

# Audit action names
AUDIT_INSTALL = "module.install"
AUDIT_UNINSTALL = "module.uninstall"
AUDIT_ENABLE = "module.enable"
AUDIT_DISABLE = "module.disable"
AUDIT_UPDATE = "module.update"
AUDIT_CONFIGURE = "module.configure"
AUDIT_REORDER = "module.reorder"
