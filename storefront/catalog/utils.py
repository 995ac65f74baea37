"""
Utility functions for catalog operations
"""
from django.utils import timezone
from django.utils.text import slugify
import uuid


def generate_unique_slug(model, text, exclude_pk=None):
    """Slugify text and append -2, -3, ... until no other row of model uses it"""
    base_slug = slugify(text or '') or 'item'
    slug = base_slug
    counter = 1
    queryset = model.objects.all()
    if exclude_pk is not None:
        queryset = queryset.exclude(pk=exclude_pk)

    while queryset.filter(slug=slug).exists():
        counter += 1
        slug = f"{base_slug}-{counter}"
    return slug


def generate_unique_sku(product_name=None):
    """Generate a unique variant SKU"""
    from .models import ProductVariant

    prefix = product_name[:4].upper().replace(' ', '') if product_name else 'PRD'
    timestamp = timezone.now().strftime('%Y%m%d')
    unique_id = str(uuid.uuid4())[:8].upper()
    sku = f"{prefix}-{timestamp}-{unique_id}"

    while ProductVariant.objects.filter(sku=sku).exists():
        unique_id = str(uuid.uuid4())[:8].upper()
        sku = f"{prefix}-{timestamp}-{unique_id}"

    return sku


def variant_label(size=None, color=None):
    """Same rule as ProductVariant.label, usable on plain values"""
    parts = [part for part in (size, color) if part]
    return ' / '.join(parts) or 'Default'
