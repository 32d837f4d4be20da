"""
ORM models. Importing this package registers every table on Base.metadata
(used by init_models() and Alembic autogenerate).
"""

from arroyyan.models.customer import Customer
from arroyyan.models.product import Inventory, Product
from arroyyan.models.sale import PAYMENT_METHODS, Sale, SaleItem
from arroyyan.models.supply import Supplier, SupplyOrder, SupplyOrderItem
from arroyyan.models.transfer import StockTransfer, StockTransferItem
from arroyyan.models.user import USER_ROLES, RefreshToken, User, UserSession

__all__ = [
    "Customer",
    "Inventory",
    "PAYMENT_METHODS",
    "Product",
    "RefreshToken",
    "Sale",
    "SaleItem",
    "StockTransfer",
    "StockTransferItem",
    "Supplier",
    "SupplyOrder",
    "SupplyOrderItem",
    "USER_ROLES",
    "User",
    "UserSession",
]
