from .catalog import Product
from .invoices import Invoice
from .auth import User, SessionToken

__all__ = [
    'Product',
    'Invoice',
    'User', 'SessionToken',
]
