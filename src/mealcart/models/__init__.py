"""Models package for MealCart."""
from .base import Base
from .user import User
from .cart_item import CartItem

__all__ = ['Base', 'User', 'CartItem']
