from .user import User, Seller
from .product import Product, StockChange, apply_stock_change
from .order import Order, OrderItem
from .restock import RestockSubscription
from .notification import Notification

# This ensures all models are registered with SQLAlchemy
__all__ = [
    'User',
    'Seller',
    'Product',
    'StockChange',
    'apply_stock_change',
    'Order',
    'OrderItem',
    'RestockSubscription',
    'Notification',
]
