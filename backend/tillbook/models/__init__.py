from .inventory import Product
from .sales import Sale, SaleLine
from .settings import Setting
from .auth import User

__all__ = [
    'Product',
    'Sale', 'SaleLine',
    'Setting',
    'User',
]
