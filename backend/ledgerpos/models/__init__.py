from .tenancy import Store
from .staff import Staff, STAFF_ROLES
from .inventory import Product, InventoryLogEntry, INVENTORY_KINDS
from .customers import Customer, CreditLedgerEntry, CUSTOMER_ORIGINS
from .shifts import Shift
from .sales import Sale, SaleItem, ReceiptSequence, PAYMENT_METHODS

__all__ = [
    'Store',
    'Staff', 'STAFF_ROLES',
    'Product', 'InventoryLogEntry', 'INVENTORY_KINDS',
    'Customer', 'CreditLedgerEntry', 'CUSTOMER_ORIGINS',
    'Shift',
    'Sale', 'SaleItem', 'ReceiptSequence', 'PAYMENT_METHODS',
]
