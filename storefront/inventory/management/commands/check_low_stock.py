"""
Management command to list variants that are low or out of stock
Usage: python manage.py check_low_stock [--out-only] [--fail-on-out]
"""
from django.core.management.base import BaseCommand, CommandError
from django.db.models import F
from storefront.catalog.models import ProductVariant
from storefront.inventory.utils import stock_status, STATUS_OUT


class Command(BaseCommand):
    help = 'List product variants whose stock is at or below their minimum stock'

    def add_arguments(self, parser):
        parser.add_argument(
            '--out-only',
            action='store_true',
            help='Only show variants that are out of stock',
        )
        parser.add_argument(
            '--fail-on-out',
            action='store_true',
            help='Exit with an error when any variant is out of stock (for cron alerts)',
        )

    def handle(self, *args, **options):
        out_only = options['out_only']

        variants = ProductVariant.objects.select_related('product').order_by('stock', 'product__name', 'id')
        if out_only:
            variants = variants.filter(stock=0)
        else:
            variants = variants.filter(stock__lte=F('min_stock'))

        self.stdout.write("=" * 80)
        self.stdout.write(self.style.SUCCESS("LOW STOCK REPORT"))
        self.stdout.write("=" * 80)

        out_count = 0
        low_count = 0
        for variant in variants:
            status = stock_status(variant.stock, variant.min_stock)
            if status == STATUS_OUT:
                out_count += 1
                style = self.style.ERROR
            else:
                low_count += 1
                style = self.style.WARNING
            self.stdout.write(style(
                f"  [{status.upper():3}] {variant.product.name} ({variant.label}) "
                f"sku={variant.sku or '-'} stock={variant.stock} min={variant.min_stock}"
            ))

        if out_count == 0 and low_count == 0:
            self.stdout.write(self.style.SUCCESS("All variants are above their minimum stock."))
        else:
            self.stdout.write("")
            self.stdout.write(f"Out of stock: {out_count}, low stock: {low_count}")

        if options['fail_on_out'] and out_count:
            raise CommandError(f"{out_count} variant(s) out of stock")
