"""Payments domain - Prepayment gate and the Stripe-compatible verifier"""

from .gate import PaymentConfirmation, PaymentGate, get_payment_gate, requires_payment

__all__ = ["PaymentConfirmation", "PaymentGate", "get_payment_gate", "requires_payment"]
