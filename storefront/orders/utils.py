"""
Order number generation and tracking timeline
"""
import random
import string
import time

from django.conf import settings

BASE36_ALPHABET = string.digits + string.ascii_uppercase

TIMELINE_STEPS = [
    ('PENDING', 'Order Placed'),
    ('CONFIRMED', 'Confirmed'),
    ('PROCESSING', 'Processing'),
    ('SHIPPED', 'Shipped'),
    ('DELIVERED', 'Delivered'),
]


def to_base36(number):
    if number == 0:
        return '0'
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(BASE36_ALPHABET[remainder])
    return ''.join(reversed(digits))


def build_order_number(timestamp_ms=None, prefix=None):
    """<PREFIX>-<base36 millisecond timestamp>-<4 random base36 chars>, e.g. ZNX-LZ3K9Q2A-7F0C"""
    prefix = prefix or settings.STOREFRONT.get('ORDER_NUMBER_PREFIX', 'ZNX')
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    suffix = ''.join(random.choices(BASE36_ALPHABET, k=4))
    return f"{prefix}-{to_base36(timestamp_ms)}-{suffix}"


def generate_order_number():
    """Generate an order number not used by any existing order"""
    from .models import Order

    order_number = build_order_number()
    while Order.objects.filter(order_number=order_number).exists():
        order_number = build_order_number()
    return order_number


def order_timeline(status):
    """
    Tracking steps for an order status.

    Steps up to and including the current one are completed, the step matching
    the status is current. A cancelled order has no current step.
    """
    step_ids = [step_id for step_id, _ in TIMELINE_STEPS]
    current_index = step_ids.index(status) if status in step_ids else -1

    steps = []
    for index, (step_id, label) in enumerate(TIMELINE_STEPS):
        steps.append({
            'status': step_id,
            'label': label,
            'completed': current_index != -1 and index <= current_index,
            'current': current_index != -1 and index == current_index,
        })

    return {
        'steps': steps,
        'current_index': current_index,
        'cancelled': status == 'CANCELLED',
    }
