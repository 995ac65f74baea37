"""
Coupon validation, cart pricing and order total computation

All money values are Decimal, quantized to 2 places with ROUND_HALF_UP.
"""
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, List, Optional

from django.db.models import F
from django.utils import timezone
from rest_framework import status

from .models import Coupon

TWO_PLACES = Decimal('0.01')
ZERO = Decimal('0.00')


def money(value) -> Decimal:
    return Decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


class PricingError(Exception):
    """Rejected cart or coupon; carries the client-facing message and HTTP status"""

    def __init__(self, message, status_code=status.HTTP_400_BAD_REQUEST):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class CouponError(PricingError):
    pass


class CartError(PricingError):
    pass


def validate_coupon(code, now=None) -> Coupon:
    """
    Look up a coupon by code (case-insensitive) and check it can be used now.

    Checks run in order and the first failure raises CouponError:
    empty code, unknown code, inactive, not yet started, expired, usage limit reached.
    """
    code = (code or '').strip().upper()
    if not code:
        raise CouponError("Code is required")

    coupon = Coupon.objects.filter(code=code).first()
    if coupon is None:
        raise CouponError("Invalid coupon code", status.HTTP_404_NOT_FOUND)

    if not coupon.is_active:
        raise CouponError("Coupon is inactive")

    now = now or timezone.now()
    if coupon.start_date and now < coupon.start_date:
        raise CouponError("Coupon not yet active")
    if coupon.end_date and now > coupon.end_date:
        raise CouponError("Coupon expired")

    if coupon.usage_limit is not None and coupon.used_count >= coupon.usage_limit:
        raise CouponError("Coupon usage limit reached")

    return coupon


def claim_coupon_use(coupon):
    """Count one use of the coupon; fails when another order already took the last use"""
    uses = Coupon.objects.filter(pk=coupon.pk)
    if coupon.usage_limit is not None:
        uses = uses.filter(used_count__lt=F('usage_limit'))
    if not uses.update(used_count=F('used_count') + 1):
        raise CouponError("Coupon usage limit reached")


def compute_discount(coupon_type, value, subtotal) -> Decimal:
    """FIXED_AMOUNT -> value; PERCENTAGE -> subtotal * value / 100"""
    value = Decimal(value)
    if coupon_type == Coupon.TYPE_FIXED_AMOUNT:
        return money(value)
    if coupon_type == Coupon.TYPE_PERCENTAGE:
        return money(Decimal(subtotal) * value / Decimal('100'))
    return ZERO


@dataclass
class CartLine:
    unit_price: Decimal
    quantity: int
    product: Any = None
    variant: Any = None

    @property
    def line_total(self) -> Decimal:
        return money(Decimal(self.unit_price) * self.quantity)


@dataclass
class OrderTotals:
    subtotal: Decimal = ZERO
    shipping: Decimal = ZERO
    discount: Decimal = ZERO
    total: Decimal = ZERO
    coupon_code: Optional[str] = None
    free_shipping_threshold: Decimal = ZERO
    lines: List[CartLine] = field(default_factory=list)

    def as_dict(self):
        return {
            'subtotal': str(self.subtotal),
            'shipping': str(self.shipping),
            'discount': str(self.discount),
            'total': str(self.total),
            'coupon_code': self.coupon_code,
            'free_shipping_threshold': str(self.free_shipping_threshold),
        }


def calculate_totals(lines, coupon=None, free_shipping_threshold=Decimal('5000'), shipping_fee=Decimal('250'),
                     free_delivery_enabled=True, always_free_delivery=False) -> OrderTotals:
    """
    Compute order totals for a cart.

    subtotal = sum(unit_price * quantity)
    shipping = 0 when subtotal >= free_shipping_threshold, otherwise shipping_fee
      (always 0 with always_free_delivery; never waived when free_delivery_enabled is off)
    discount = coupon discount on the subtotal (see compute_discount)
    total = max(0, subtotal + shipping - discount)
    """
    lines = list(lines)
    subtotal = money(sum((line.line_total for line in lines), ZERO))
    threshold = money(free_shipping_threshold)
    if always_free_delivery or (free_delivery_enabled and subtotal >= threshold):
        shipping = ZERO
    else:
        shipping = money(shipping_fee)
    discount = compute_discount(coupon.type, coupon.value, subtotal) if coupon else ZERO
    total = max(ZERO, subtotal + shipping - discount)

    return OrderTotals(
        subtotal=subtotal,
        shipping=shipping,
        discount=discount,
        total=money(total),
        coupon_code=coupon.code if coupon else None,
        free_shipping_threshold=threshold,
        lines=lines,
    )


def calculate_totals_for_store(lines, coupon=None, store_settings=None) -> OrderTotals:
    """calculate_totals using the shop's configured threshold and fee"""
    from storefront.core.models import StoreSettings

    store_settings = store_settings or StoreSettings.load()
    return calculate_totals(
        lines,
        coupon=coupon,
        free_shipping_threshold=store_settings.free_shipping_threshold,
        shipping_fee=store_settings.shipping_fee,
        free_delivery_enabled=store_settings.free_delivery_enabled,
        always_free_delivery=store_settings.always_free_delivery,
    )


def build_cart_lines(items, lock_variants=False) -> List[CartLine]:
    """
    Resolve [{product_id, variant_id?, quantity}] into priced CartLines.

    Prices always come from the database: product price plus variant price modifier.
    With lock_variants the variant rows are selected FOR UPDATE (call inside a transaction).
    """
    from storefront.catalog.models import Product, ProductVariant

    if not items:
        raise CartError("Cart is empty")

    product_ids = {item['product_id'] for item in items}
    products = Product.objects.filter(is_active=True).in_bulk(product_ids)

    variant_ids = {item['variant_id'] for item in items if item.get('variant_id')}
    variant_qs = ProductVariant.objects.all()
    if lock_variants:
        variant_qs = variant_qs.select_for_update()
    variants = variant_qs.in_bulk(variant_ids)

    lines = []
    for item in items:
        product = products.get(item['product_id'])
        if product is None:
            raise CartError(f"Product {item['product_id']} is not available", status.HTTP_404_NOT_FOUND)

        variant = None
        variant_id = item.get('variant_id')
        if variant_id:
            variant = variants.get(variant_id)
            if variant is None or variant.product_id != product.id:
                raise CartError(f"Variant {variant_id} not found for {product.name}", status.HTTP_404_NOT_FOUND)
        elif product.variants.exists():
            raise CartError(f"Please select a variant for {product.name}")

        modifier = variant.price_modifier if variant else ZERO
        lines.append(CartLine(
            unit_price=money(product.price + (modifier or ZERO)),
            quantity=item['quantity'],
            product=product,
            variant=variant,
        ))
    return lines
