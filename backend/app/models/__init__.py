from app.models.category import Category
from app.models.medicine import Medicine
from app.models.customer import Customer
from app.models.supplier import Supplier
from app.models.purchase_order import PurchaseOrder, PurchaseOrderItem
from app.models.sale import Sale, SaleItem
from app.models.cost import Cost

__all__ = [
    "Category", "Medicine", "Customer", "Supplier",
    "PurchaseOrder", "PurchaseOrderItem", "Sale", "SaleItem", "Cost",
]
