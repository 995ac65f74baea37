from django.urls import path
from .views import coupon_list_create, coupon_detail, validate_coupon_view, checkout_quote

urlpatterns = [
    # Admin coupon endpoints
    path('admin/coupons/', coupon_list_create, name='coupon-list-create'),
    path('admin/coupons/<int:pk>/', coupon_detail, name='coupon-detail'),

    # Checkout endpoints
    path('checkout/validate-coupon/', validate_coupon_view, name='validate-coupon'),
    path('checkout/quote/', checkout_quote, name='checkout-quote'),
]
