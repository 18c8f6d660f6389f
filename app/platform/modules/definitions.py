"""
Default catalog content.

``DEFAULT_MASTER_MODULES`` is the source of truth for the catalog: the
reconciler overwrites every catalog entry listed here on each run.
"""


def configuration(required=(), optional=(), dependencies=(), conflicts_with=(), default_enabled=True, custom_settings=None):
    return {
        "required_permissions": list(required),
        "optional_permissions": list(optional),
        "dependencies": list(dependencies),
        "conflicts_with": list(conflicts_with),
        "default_enabled": default_enabled,
        "custom_settings": custom_settings or {},
    }


def ui(icon, primary_color, tags=(), keywords=()):
    return {"icon": icon, "primary_color": primary_color, "tags": list(tags), "keywords": list(keywords)}


def relevance(retail, wholesale, manufacturing):
    """Each argument is ``(score, essential, reason)``."""
    return [
        {"business_type": business_type, "relevance_score": score, "is_essential": essential, "reason": reason}
        for business_type, (score, essential, reason) in (
            ("RETAIL", retail),
            ("WHOLESALE", wholesale),
            ("MANUFACTURING", manufacturing),
        )
    ]


def routes(base_path, display_name, icon, menu_items=()):
    return {
        "base_path": base_path,
        "display_name": display_name,
        "icon": icon,
        "menu_items": [
            {"id": item_id, "label": label, "route_path": path, "icon": item_icon, "order": order, "is_default": order == 1}
            for item_id, label, path, item_icon, order in menu_items
        ],
    }


DEFAULT_MASTER_MODULES = [
    {
        "module_code": "business-profile",
        "name": "Business Profile",
        "description": "Core business profile management with company information, branding, operational settings, "
                       "and multi-timezone support for comprehensive business configuration",
        "tagline": "Configure your business identity and operations",
        "category": "ADMINISTRATION",
        "required_tier": "FREE",
        "required_role": "EMPLOYEE",
        "complexity": "ESSENTIAL",
        "business_relevance": relevance(
            (10, True, "Essential for setting up store identity and operational parameters"),
            (10, True, "Critical for B2B business identity and regulatory compliance"),
            (10, True, "Mandatory for factory settings and business operations configuration"),
        ),
        "configuration": configuration(
            required=["BUSINESS_READ", "BUSINESS_WRITE"],
            optional=["BUSINESS_ADMIN", "BUSINESS_SETTINGS"],
        ),
        "ui_metadata": ui("store", "#673AB7", tags=["Business Setup", "Profile", "Configuration", "Branding", "Operations"]),
        "route_info": routes("/business", "Business", "store", [
            ("business-profile", "Business Profile", "/business/profile", "store", 1),
            ("business-settings", "Settings", "/business/settings", "settings", 2),
            ("business-branding", "Branding", "/business/branding", "palette", 3),
        ]),
        "size_mb": 3,
        "featured": True,
        "display_order": 5,
    },
    {
        "module_code": "customer-management",
        "name": "Customer Management",
        "description": "Comprehensive customer relationship management with contact information, credit limits, "
                       "GST compliance, and business relationship tracking",
        "tagline": "Manage your business relationships effectively",
        "category": "CUSTOMER_MANAGEMENT",
        "required_tier": "FREE",
        "required_role": "EMPLOYEE",
        "complexity": "STANDARD",
        "business_relevance": relevance(
            (9, True, "Essential for managing customer database and relationships"),
            (10, True, "Critical for B2B customer management and credit control"),
            (8, True, "Important for managing distributor and dealer networks"),
        ),
        "configuration": configuration(
            required=["CUSTOMER_READ", "CUSTOMER_WRITE"],
            optional=["CUSTOMER_DELETE", "CUSTOMER_EXPORT"],
        ),
        "ui_metadata": ui("people", "#1976D2", tags=["CRM", "Contacts", "GST", "Credit Management"]),
        "route_info": routes("/customers", "Customers", "people", [
            ("customer-list", "All Customers", "/customers", "people", 1),
            ("customer-create", "Create Customer", "/customers/create", "person_add", 2),
            ("customer-states", "Manage States", "/customers/states", "location_on", 4),
            ("customer-types", "Customer Types", "/customers/types", "category", 5),
            ("customer-groups", "Customer Groups", "/customers/groups", "group", 6),
            ("customer-config", "Configuration", "/customers/config", "tune", 7),
        ]),
        "size_mb": 5,
        "featured": True,
        "display_order": 10,
    },
    {
        "module_code": "product-management",
        "name": "Product Catalog",
        "description": "Complete product management system with inventory tracking, pricing, tax codes, and category "
                       "organization for comprehensive catalog management",
        "tagline": "Organize and manage your entire product inventory",
        "category": "INVENTORY_MANAGEMENT",
        "required_tier": "FREE",
        "required_role": "EMPLOYEE",
        "complexity": "STANDARD",
        "business_relevance": relevance(
            (10, True, "Core module for managing product inventory and pricing"),
            (10, True, "Essential for bulk product management and pricing tiers"),
            (9, True, "Critical for managing raw materials and finished goods"),
        ),
        "configuration": configuration(
            required=["PRODUCT_READ", "PRODUCT_WRITE"],
            optional=["PRODUCT_DELETE", "INVENTORY_MANAGEMENT"],
            dependencies=["tax-code-management"],
        ),
        "ui_metadata": ui("inventory", "#388E3C", tags=["Inventory", "Catalog", "Pricing", "Stock Management"]),
        "route_info": routes("/products", "Products", "inventory", [
            ("product-list", "All Products", "/products", "inventory", 1),
            ("product-create", "Create Product", "/products/create", "add", 2),
            ("product-categories", "Categories", "/products/categories", "category", 3),
        ]),
        "size_mb": 8,
        "featured": True,
        "display_order": 20,
    },
    {
        "module_code": "order-management",
        "name": "Order Management",
        "description": "End-to-end order processing system with workflow management, status tracking, and integration "
                       "with inventory and invoicing systems",
        "tagline": "Streamline your sales order processing",
        "category": "SALES_MANAGEMENT",
        "required_tier": "BASIC",
        "required_role": "EMPLOYEE",
        "complexity": "STANDARD",
        "business_relevance": relevance(
            (9, True, "Essential for managing sales transactions and order fulfillment"),
            (10, True, "Critical for B2B order processing and bulk sales management"),
            (8, False, "Important for managing production orders and delivery"),
        ),
        # "product-catalog" has no catalog entry yet; it stays a forward reference.
        "configuration": configuration(
            required=["ORDER_READ", "ORDER_WRITE"],
            optional=["ORDER_DELETE", "ORDER_APPROVE"],
            dependencies=["customer-management", "product-catalog"],
        ),
        "ui_metadata": ui("shopping_cart", "#F57C00", tags=["Sales", "Orders", "Workflow", "Processing"]),
        "route_info": routes("/orders", "Orders", "shopping_cart", [
            ("order-list", "All Orders", "/orders", "shopping_cart", 1),
            ("order-create", "Create Order", "/orders/create", "add_shopping_cart", 2),
            ("order-drafts", "Draft Orders", "/orders/drafts", "drafts", 3),
        ]),
        "size_mb": 12,
        "featured": True,
        "display_order": 30,
    },
    {
        "module_code": "invoice-billing",
        "name": "Invoice & Billing",
        "description": "Comprehensive invoicing system with GST compliance, payment tracking, PDF generation, and "
                       "automated billing workflows",
        "tagline": "Generate professional invoices with GST compliance",
        "category": "FINANCIAL_MANAGEMENT",
        "required_tier": "BASIC",
        "required_role": "EMPLOYEE",
        "complexity": "ADVANCED",
        "business_relevance": relevance(
            (10, True, "Essential for billing customers and GST compliance"),
            (10, True, "Critical for B2B invoicing and payment management"),
            (9, True, "Important for billing distributors and managing receivables"),
        ),
        "configuration": configuration(
            required=["INVOICE_READ", "INVOICE_WRITE"],
            optional=["INVOICE_DELETE", "PAYMENT_RECONCILE"],
            dependencies=["customer-management", "order-management", "tax-code-management"],
        ),
        "ui_metadata": ui("receipt", "#7B1FA2", tags=["Invoicing", "GST", "Billing", "Payments", "PDF"]),
        "size_mb": 15,
        "featured": True,
        "display_order": 40,
    },
    {
        "module_code": "inventory-management",
        "name": "Inventory Management",
        "description": "Advanced inventory control with stock tracking, low stock alerts, batch management, and "
                       "multi-location inventory support",
        "tagline": "Keep perfect track of your stock levels",
        "category": "INVENTORY_MANAGEMENT",
        "required_tier": "PREMIUM",
        "required_role": "MANAGER",
        "complexity": "ADVANCED",
        "business_relevance": relevance(
            (8, False, "Useful for advanced stock management and reorder automation"),
            (9, True, "Critical for managing large inventory volumes and locations"),
            (10, True, "Essential for raw material and finished goods tracking"),
        ),
        "configuration": configuration(
            required=["INVENTORY_READ", "INVENTORY_WRITE"],
            optional=["INVENTORY_ADJUST", "BATCH_MANAGEMENT"],
            dependencies=["product-catalog"],
        ),
        "ui_metadata": ui("warehouse", "#5D4037", tags=["Stock Control", "Warehousing", "Alerts", "Multi-location"]),
        "size_mb": 20,
        "featured": False,
        "display_order": 50,
    },
    {
        "module_code": "tax-code-management",
        "name": "Tax Code Management",
        "description": "GST compliance system with automatic tax calculations, SGST/CGST/IGST handling, and HSN code "
                       "management for Indian taxation",
        "tagline": "Stay GST compliant with automated tax calculations",
        "category": "FINANCIAL_MANAGEMENT",
        "required_tier": "FREE",
        "required_role": "EMPLOYEE",
        "complexity": "STANDARD",
        "business_relevance": relevance(
            (10, True, "Mandatory for GST compliance in retail operations"),
            (10, True, "Essential for B2B GST compliance and tax calculations"),
            (10, True, "Critical for manufacturing GST compliance and input tax credit"),
        ),
        "configuration": configuration(
            required=["TAX_CODE_READ", "TAX_CODE_WRITE"],
            optional=["TAX_REPORTS", "GST_RETURNS"],
        ),
        "ui_metadata": ui("calculate", "#D32F2F", tags=["GST", "Tax Compliance", "HSN Codes", "Indian Taxation"]),
        "size_mb": 6,
        "featured": True,
        "display_order": 60,
    },
    {
        "module_code": "notification-system",
        "name": "Notification System",
        "description": "Comprehensive notification management with email, SMS, and in-app notifications for business "
                       "events and alerts",
        "tagline": "Stay informed with intelligent notifications",
        "category": "COMMUNICATION",
        "required_tier": "BASIC",
        "required_role": "EMPLOYEE",
        "complexity": "STANDARD",
        "business_relevance": relevance(
            (7, False, "Helpful for customer communication and alerts"),
            (8, False, "Useful for B2B communication and order updates"),
            (8, False, "Important for production alerts and status updates"),
        ),
        "configuration": configuration(
            required=["NOTIFICATION_READ"],
            optional=["NOTIFICATION_SEND", "NOTIFICATION_ADMIN"],
        ),
        "ui_metadata": ui("notifications", "#FF5722", tags=["Alerts", "Email", "SMS", "Communication"]),
        "size_mb": 4,
        "featured": False,
        "display_order": 70,
    },
    {
        "module_code": "user-management",
        "name": "User Management",
        "description": "Complete user administration with role-based access control, permissions, and multi-device "
                       "authentication support",
        "tagline": "Manage users and permissions effectively",
        "category": "ADMINISTRATION",
        "required_tier": "FREE",
        "required_role": "ADMIN",
        "complexity": "ADVANCED",
        "business_relevance": relevance(
            (8, True, "Important for managing staff access and permissions"),
            (9, True, "Critical for managing multiple user roles and access levels"),
            (9, True, "Essential for managing diverse workforce access requirements"),
        ),
        "configuration": configuration(
            required=["USER_READ", "USER_WRITE"],
            optional=["ROLE_MANAGEMENT", "PERMISSION_ADMIN"],
        ),
        "ui_metadata": ui("admin_panel_settings", "#424242", tags=["Users", "Roles", "Permissions", "Security"]),
        "size_mb": 10,
        "featured": False,
        "display_order": 80,
    },
    {
        "module_code": "business-reporting",
        "name": "Business Reporting",
        "description": "Advanced reporting and analytics with customizable dashboards, financial reports, and business "
                       "intelligence insights",
        "tagline": "Transform data into actionable business insights",
        "category": "ANALYTICS_REPORTING",
        "required_tier": "PREMIUM",
        "required_role": "MANAGER",
        "complexity": "SPECIALIZED",
        "business_relevance": relevance(
            (9, False, "Valuable for sales analysis and business performance tracking"),
            (10, True, "Critical for B2B analytics and performance monitoring"),
            (9, True, "Essential for production analytics and efficiency metrics"),
        ),
        "configuration": configuration(
            required=["REPORT_READ", "REPORT_GENERATE"],
            optional=["REPORT_ADMIN", "DASHBOARD_CONFIG"],
            dependencies=["customer-management", "product-catalog", "order-management", "invoice-billing"],
        ),
        "ui_metadata": ui("analytics", "#3F51B5", tags=["Reports", "Analytics", "Business Intelligence", "Dashboards"]),
        "size_mb": 25,
        "featured": True,
        "display_order": 90,
    },
    {
        "module_code": "business-dashboard",
        "name": "Business Dashboard",
        "description": "Executive dashboard with real-time KPIs, performance metrics, and customizable widgets for "
                       "business monitoring",
        "tagline": "Get instant insights into your business performance",
        "category": "ANALYTICS_REPORTING",
        "required_tier": "FREE",
        "required_role": "EMPLOYEE",
        "complexity": "ESSENTIAL",
        "business_relevance": relevance(
            (8, False, "Helpful for monitoring daily sales and performance"),
            (9, False, "Valuable for tracking B2B metrics and trends"),
            (8, False, "Useful for production monitoring and efficiency tracking"),
        ),
        "configuration": configuration(
            required=["DASHBOARD_READ"],
            optional=["DASHBOARD_CONFIG"],
        ),
        "ui_metadata": ui("dashboard", "#00BCD4", tags=["Dashboard", "KPIs", "Monitoring", "Widgets"]),
        "route_info": routes("/dashboard", "Dashboard", "dashboard", [
            ("main-dashboard", "Overview", "/dashboard", "dashboard", 1),
            ("dashboard-config", "Customize", "/dashboard/configure", "tune", 2),
        ]),
        "size_mb": 8,
        "featured": False,
        "display_order": 100,
    },
]
