"""
Management command to repair product and category slugs
Usage: python manage.py fix_slugs [--dry-run] [--fill-skus]
"""
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils.text import slugify
from storefront.catalog.models import Category, Product, ProductVariant
from storefront.catalog.utils import generate_unique_slug, generate_unique_sku
from storefront.core.cache_signals import suspend_cache_signals
from storefront.core.cache_utils import invalidate_products_cache


class Command(BaseCommand):
    help = "Regenerates missing or malformed category and product slugs"

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show what would be changed without making changes',
        )
        parser.add_argument(
            '--fill-skus',
            action='store_true',
            help='Also assign generated SKUs to variants that have none',
        )

    def fix_model(self, model, dry_run):
        fixed = 0
        for obj in model.objects.order_by('id'):
            clean = slugify(obj.slug or '')
            if clean and clean == obj.slug:
                continue
            new_slug = generate_unique_slug(model, clean or obj.name, exclude_pk=obj.pk)
            self.stdout.write(f"  {model.__name__} {obj.id} ({obj.name}): \"{obj.slug}\" -> \"{new_slug}\"")
            if not dry_run:
                obj.slug = new_slug
                obj.save(update_fields=['slug', 'updated_at'])
            fixed += 1
        return fixed

    def handle(self, *args, **options):
        dry_run = options['dry_run']

        self.stdout.write("=" * 80)
        self.stdout.write(self.style.SUCCESS("FIX SLUGS"))
        self.stdout.write("=" * 80)
        if dry_run:
            self.stdout.write(self.style.WARNING("DRY RUN MODE - No changes will be made"))

        with transaction.atomic(), suspend_cache_signals():
            category_count = self.fix_model(Category, dry_run)
            product_count = self.fix_model(Product, dry_run)

            sku_count = 0
            if options['fill_skus']:
                for variant in ProductVariant.objects.filter(sku__isnull=True).select_related('product'):
                    sku = generate_unique_sku(variant.product.name)
                    self.stdout.write(f"  Variant {variant.id} ({variant}): SKU -> {sku}")
                    if not dry_run:
                        variant.sku = sku
                        variant.save(update_fields=['sku', 'updated_at'])
                    sku_count += 1

        if not dry_run:
            invalidate_products_cache()

        self.stdout.write("")
        self.stdout.write(self.style.SUCCESS(
            f"Categories fixed: {category_count}, products fixed: {product_count}, SKUs assigned: {sku_count}"
        ))
