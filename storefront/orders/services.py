"""
Checkout: turns a validated cart into an order

Prices, shipping and discount are recomputed on the server; stock is checked
and decremented inside the same transaction that writes the order.
"""
import logging
from collections import OrderedDict

from django.db import transaction
from django.db.models import F

from storefront.catalog.models import ProductVariant
from storefront.core.cache_utils import invalidate_products_cache
from storefront.core.models import StoreSettings
from storefront.inventory.models import StockAdjustment
from storefront.inventory.utils import record_stock_change
from storefront.pricing.services import (
    PricingError, validate_coupon, claim_coupon_use, build_cart_lines, calculate_totals_for_store
)
from .models import Order, OrderItem
from .utils import generate_order_number

logger = logging.getLogger(__name__)


class CheckoutError(PricingError):
    pass


def check_payment_method(payment_method, store_settings):
    if payment_method == Order.PAYMENT_BANK_TRANSFER and not store_settings.bank_transfer_enabled:
        raise CheckoutError("Bank transfer is not available")
    if payment_method == Order.PAYMENT_COD and not store_settings.cod_enabled:
        raise CheckoutError("Cash on delivery is not available")


def quantities_by_variant(lines):
    """Total quantity per variant (the same variant may appear on several lines)"""
    totals = OrderedDict()
    for line in lines:
        if line.variant is None:
            continue
        entry = totals.setdefault(line.variant.id, [line.variant, 0])
        entry[1] += line.quantity
    return totals


def place_order(data, user=None):
    """
    Create an order from validated checkout data.

    `data` holds the customer fields, `payment_method`, optional `coupon_code`
    and `items` [{product_id, variant_id?, quantity}]. Raises CheckoutError
    (or a PricingError subclass) when the order cannot be placed.
    """
    store_settings = StoreSettings.load()
    check_payment_method(data['payment_method'], store_settings)

    with transaction.atomic():
        lines = build_cart_lines(data['items'], lock_variants=True)

        coupon = None
        coupon_code = (data.get('coupon_code') or '').strip()
        if coupon_code:
            coupon = validate_coupon(coupon_code)

        requested = quantities_by_variant(lines)
        for variant, quantity in requested.values():
            if variant.stock < quantity:
                raise CheckoutError(
                    f"Insufficient stock for {variant.product.name} ({variant.label}): "
                    f"{variant.stock} available, {quantity} requested"
                )

        totals = calculate_totals_for_store(lines, coupon=coupon, store_settings=store_settings)

        order = Order.objects.create(
            order_number=generate_order_number(),
            user=user if user is not None and user.is_authenticated else None,
            customer_name=data['customer_name'],
            customer_email=data['customer_email'],
            customer_phone=data['customer_phone'],
            shipping_address=data['shipping_address'],
            city=data['city'],
            postal_code=data.get('postal_code') or None,
            subtotal=totals.subtotal,
            shipping=totals.shipping,
            discount=totals.discount,
            coupon_code=coupon.code if coupon else None,
            total=totals.total,
            payment_method=data['payment_method'],
            notes=data.get('notes') or None,
        )
        OrderItem.objects.bulk_create([
            OrderItem(
                order=order,
                product=line.product,
                variant=line.variant,
                product_name=line.product.name,
                variant_label=line.variant.label if line.variant else None,
                quantity=line.quantity,
                price=line.unit_price,
            )
            for line in lines
        ])

        for variant, quantity in requested.values():
            updated = ProductVariant.objects.filter(
                pk=variant.pk, stock__gte=quantity
            ).update(stock=F('stock') - quantity)
            if not updated:
                raise CheckoutError(f"Insufficient stock for {variant.product.name} ({variant.label})")
            record_stock_change(
                variant, variant.stock, variant.stock - quantity,
                reason=StockAdjustment.REASON_SALE, user=user,
                notes=f"Order {order.order_number}"
            )

        if coupon:
            claim_coupon_use(coupon)

        # Queryset updates bypass the catalog signals
        transaction.on_commit(invalidate_products_cache)

    logger.info(
        f"Order {order.order_number} placed: {len(lines)} line(s), total {order.total}, "
        f"payment {order.payment_method}"
    )
    return order
