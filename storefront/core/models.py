from django.conf import settings
from django.contrib.auth.models import AbstractUser
from django.db import models
from decimal import Decimal


class User(AbstractUser):
    """Shop user. Staff users are the admin console operators, everyone else is a customer."""
    name = models.CharField(max_length=200, blank=True)
    phone = models.CharField(max_length=20, blank=True, null=True)
    address = models.TextField(blank=True, null=True)
    city = models.CharField(max_length=100, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    @property
    def display_name(self):
        return self.name or self.get_full_name() or self.username

    class Meta:
        db_table = 'users'


class StoreSettings(models.Model):
    """Shop-wide shipping, payment and homepage content settings (single row)"""
    HERO_MODE_CHOICES = [
        ('image', 'Single image'),
        ('slider', 'Slider'),
    ]
    MAX_SLIDER_IMAGES = 5

    free_shipping_threshold = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('5000.00'))
    shipping_fee = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('250.00'))
    free_delivery_enabled = models.BooleanField(default=True, help_text='Waive shipping at or above the threshold')
    always_free_delivery = models.BooleanField(default=False, help_text='No shipping fee on any order')
    bank_transfer_enabled = models.BooleanField(default=True)
    cod_enabled = models.BooleanField(default=True)
    bank_name = models.CharField(max_length=200, blank=True, null=True)
    account_title = models.CharField(max_length=200, blank=True, null=True)
    account_number = models.CharField(max_length=100, blank=True, null=True)
    iban = models.CharField(max_length=100, blank=True, null=True)
    bank_instructions = models.TextField(blank=True, null=True)

    # Homepage hero
    hero_mode = models.CharField(max_length=10, choices=HERO_MODE_CHOICES, default='image')
    hero_image = models.URLField(max_length=500, blank=True, null=True)
    hero_slider_images = models.JSONField(default=list, blank=True)
    hero_title = models.CharField(max_length=255, default='Discover Quality Products at Amazing Prices')
    hero_subtitle = models.TextField(
        blank=True, default='Shop the latest trends in electronics, fashion, home essentials, and more.'
    )
    hero_show_text = models.BooleanField(default=True)
    hero_show_badge = models.BooleanField(default=True)
    hero_badge_text = models.CharField(max_length=100, blank=True, default='New Collection')
    hero_show_button1 = models.BooleanField(default=True)
    hero_button1_text = models.CharField(max_length=100, blank=True, default='Shop Now')
    hero_button1_link = models.CharField(max_length=255, blank=True, default='/products')
    hero_show_button2 = models.BooleanField(default=True)
    hero_button2_text = models.CharField(max_length=100, blank=True, default='Explore Categories')
    hero_button2_link = models.CharField(max_length=255, blank=True, default='/categories')
    hero_image_width = models.PositiveIntegerField(default=1920)
    hero_image_height = models.PositiveIntegerField(default=800)

    # Feature badges under the hero: [{icon, title, subtitle}]
    feature_badges = models.JSONField(default=list, blank=True)

    # Promo banner
    promo_banner_enabled = models.BooleanField(default=False)
    promo_banner_image = models.URLField(max_length=500, blank=True, null=True)
    promo_banner_link = models.CharField(max_length=255, blank=True, null=True)
    promo_banner_width = models.PositiveIntegerField(default=1200)
    promo_banner_height = models.PositiveIntegerField(default=300)

    # Footer
    footer_brand_text = models.TextField(blank=True, null=True)
    footer_email = models.EmailField(blank=True, null=True)
    footer_phone = models.CharField(max_length=50, blank=True, null=True)
    footer_address = models.TextField(blank=True, null=True)
    footer_social_links = models.JSONField(default=list, blank=True)

    # Trust badges on the product page
    product_badge1_enabled = models.BooleanField(default=True)
    product_badge1_icon = models.CharField(max_length=50, blank=True, default='truck')
    product_badge1_title = models.CharField(max_length=100, blank=True, default='Free Delivery')
    product_badge1_subtitle = models.CharField(max_length=255, blank=True, default='On orders above the free delivery threshold')
    product_badge2_enabled = models.BooleanField(default=True)
    product_badge2_icon = models.CharField(max_length=50, blank=True, default='shield')
    product_badge2_title = models.CharField(max_length=100, blank=True, default='Secure Payment')
    product_badge2_subtitle = models.CharField(max_length=255, blank=True, default='Cash on delivery or bank transfer')

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return 'Store settings'

    @classmethod
    def load(cls):
        """Return the settings row, creating it from the configured defaults on first use"""
        defaults = getattr(settings, 'STOREFRONT', {})
        instance, _ = cls.objects.get_or_create(
            pk=1,
            defaults={
                'free_shipping_threshold': Decimal(str(defaults.get('FREE_SHIPPING_THRESHOLD', '5000'))),
                'shipping_fee': Decimal(str(defaults.get('SHIPPING_FEE', '250'))),
            }
        )
        return instance

    def save(self, *args, **kwargs):
        self.pk = 1
        super().save(*args, **kwargs)

    class Meta:
        db_table = 'store_settings'
        verbose_name_plural = 'store settings'


class AuditLog(models.Model):
    """Audit log for admin operations"""
    ACTION_CHOICES = [
        ('create', 'Create'),
        ('update', 'Update'),
        ('delete', 'Delete'),
        ('bulk_delete', 'Bulk Delete'),
        ('stock_adjust', 'Stock Adjustment'),
        ('price_change', 'Price Change'),
        ('coupon_toggle', 'Coupon Toggled'),
        ('order_create', 'Order Placed'),
        ('order_status', 'Order Status Changed'),
        ('settings_update', 'Settings Updated'),
        ('export', 'Export'),
    ]

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, related_name='audit_logs')
    action = models.CharField(max_length=50, choices=ACTION_CHOICES)
    model_name = models.CharField(max_length=100)
    object_id = models.CharField(max_length=100)
    object_name = models.CharField(max_length=255, blank=True, null=True, help_text="Human-readable name of the object (e.g., product name, coupon code)")
    object_reference = models.CharField(max_length=255, blank=True, null=True, help_text="Reference identifier (e.g., order number)")
    changes = models.JSONField(default=dict, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'audit_logs'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['-created_at'], name='idx_auditlog_created'),
            models.Index(fields=['action'], name='idx_auditlog_action'),
            models.Index(fields=['model_name'], name='idx_auditlog_model'),
            models.Index(fields=['object_reference'], name='idx_auditlog_reference'),
        ]
