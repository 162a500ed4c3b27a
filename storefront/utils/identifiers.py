# storefront/utils/identifiers.py
import secrets
import time

def generate_order_number() -> str:
    """Public order number: ORD-<epoch ms>-<3 random digits>"""
    timestamp = int(time.time() * 1000)
    suffix = f"{secrets.randbelow(1000):03d}"
    return f"ORD-{timestamp}-{suffix}"

def cod_idempotency_key(buyer_id: int, client_key: str) -> str:
    """Scope a client-supplied retry key to its buyer"""
    return f"cod:{buyer_id}:{client_key}"

def payment_idempotency_key(payment_reference: str) -> str:
    return f"payment:{payment_reference}"
