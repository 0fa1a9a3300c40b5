"""
Payments app: escrow payments through Stripe.

This app handles:
- PaymentIntent creation and client confirmation
- Escrow hold, release, refund and partial settlement
- The immutable transaction ledger
- Stripe webhook ingestion and processing

Usage:
    from payments.services import EscrowPaymentManager

    quote = EscrowPaymentManager().create_intent(service.id, buyer)
"""
