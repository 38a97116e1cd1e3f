"""
Barion Payment Tool - Payment start, state, capture, refund and cancellation.
"""

from .payment_tool import register_tools

__all__ = ["register_tools"]
