from .user import User
from .store import Store
from .customer import Customer
from .order import Order

__all__ = [
    'User',
    'Store',
    'Customer',
    'Order',
]
