from .records import StoredRecord
from .customers import Customer
from .inventory import Product
from .sales import Sale, SaleItem

__all__ = [
    'StoredRecord',
    'Customer',
    'Product',
    'Sale', 'SaleItem',
]
