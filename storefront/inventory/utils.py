"""
Stock status helpers shared by catalog, inventory and reports
"""
STATUS_OK = 'ok'
STATUS_LOW = 'low'
STATUS_OUT = 'out'


def stock_status(stock, min_stock):
    """
    Derive the inventory status of a variant.

    out: stock == 0
    low: 0 < stock <= min_stock
    ok:  anything above the threshold
    """
    if stock <= 0:
        return STATUS_OUT
    if stock <= min_stock:
        return STATUS_LOW
    return STATUS_OK


def record_stock_change(variant, previous_stock, new_stock, reason, user=None, notes=''):
    """Write a StockAdjustment row; no-op when the stock did not change"""
    from .models import StockAdjustment

    if previous_stock == new_stock:
        return None
    return StockAdjustment.objects.create(
        variant=variant,
        previous_stock=previous_stock,
        new_stock=new_stock,
        reason=reason,
        user=user if user is not None and user.is_authenticated else None,
        notes=notes or '',
    )
