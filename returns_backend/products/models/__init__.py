"""
PATH: products/models/__init__.py

Products models export surface.
"""

from .product import Product
from .serial_unit import SerialUnit
from .stock_movement import StockMovement

__all__ = [
    "Product",
    "SerialUnit",
    "StockMovement",
]
