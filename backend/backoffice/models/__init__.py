from .inventory import Item
from .directory import Store, Staff
from .sales import Sale, SaleLine

__all__ = [
    'Item',
    'Store', 'Staff',
    'Sale', 'SaleLine',
]
