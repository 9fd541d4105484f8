"""
Database package for PostgreSQL integration
"""
from .config import settings, AppSettings
from .connection import (
    Base,
    get_engine,
    get_session_maker,
    init_postgres_db,
    close_postgres_db
)
from .models import (
    Profile,
    Customer,
    InventoryItem,
    InventoryHistory,
    Project,
    CustomerMaterialIssue,
    ProjectVendorPurchase,
    Vendor,
    Worker,
    Payment,
    TABLE_MODELS
)

__all__ = [
    # Config
    "settings",
    "AppSettings",
    # Connection
    "Base",
    "get_engine",
    "get_session_maker",
    "init_postgres_db",
    "close_postgres_db",
    # Models
    "Profile",
    "Customer",
    "InventoryItem",
    "InventoryHistory",
    "Project",
    "CustomerMaterialIssue",
    "ProjectVendorPurchase",
    "Vendor",
    "Worker",
    "Payment",
    "TABLE_MODELS"
]
