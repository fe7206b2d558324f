# returns/models/__init__.py

"""
RETURNS MODELS PACKAGE EXPORTS
"""

from .refund_transaction import RefundTransaction
from .return_activity import ReturnActivity
from .return_item import ReturnItem, ReturnItemSerial
from .return_request import Return

__all__ = [
    "Return",
    "ReturnItem",
    "ReturnItemSerial",
    "RefundTransaction",
    "ReturnActivity",
]
