from django.core.validators import MinValueValidator
from django.db import models
from decimal import Decimal


class Coupon(models.Model):
    """Discount codes redeemable at checkout"""
    TYPE_PERCENTAGE = 'PERCENTAGE'
    TYPE_FIXED_AMOUNT = 'FIXED_AMOUNT'
    TYPE_CHOICES = [
        (TYPE_PERCENTAGE, 'Percentage'),
        (TYPE_FIXED_AMOUNT, 'Fixed Amount'),
    ]

    code = models.CharField(max_length=50, unique=True)
    type = models.CharField(max_length=20, choices=TYPE_CHOICES, default=TYPE_PERCENTAGE)
    value = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(Decimal('0.00'))])
    start_date = models.DateTimeField(null=True, blank=True)
    end_date = models.DateTimeField(null=True, blank=True)
    usage_limit = models.PositiveIntegerField(null=True, blank=True)  # None = unlimited
    used_count = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def save(self, *args, **kwargs):
        if self.code:
            self.code = self.code.strip().upper()
        super().save(*args, **kwargs)

    def __str__(self):
        return self.code

    class Meta:
        db_table = 'coupons'
        ordering = ['-created_at', '-id']
