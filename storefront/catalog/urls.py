from django.urls import path
from .views import (
    category_list, product_list, product_detail_by_slug,
    product_reviews, can_review,
    admin_category_list_create, admin_category_detail,
    admin_product_list_create, admin_product_detail,
    admin_product_bulk_delete, admin_product_export,
)

urlpatterns = [
    # Storefront endpoints
    path('categories/', category_list, name='category-list'),
    path('products/', product_list, name='product-list'),
    path('products/<slug:slug>/', product_detail_by_slug, name='product-detail-by-slug'),
    path('reviews/<int:product_id>/', product_reviews, name='product-reviews'),
    path('reviews/can-review/<int:product_id>/', can_review, name='can-review'),

    # Admin category endpoints
    path('admin/categories/', admin_category_list_create, name='admin-category-list-create'),
    path('admin/categories/<int:pk>/', admin_category_detail, name='admin-category-detail'),

    # Admin product endpoints (fixed paths before <int:pk>)
    path('admin/products/bulk-delete/', admin_product_bulk_delete, name='admin-product-bulk-delete'),
    path('admin/products/export/', admin_product_export, name='admin-product-export'),
    path('admin/products/', admin_product_list_create, name='admin-product-list-create'),
    path('admin/products/<int:pk>/', admin_product_detail, name='admin-product-detail'),
]
