from django.contrib import admin
from .models import Category, Product, ProductVariant, Review


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ['name', 'slug', 'created_at']
    search_fields = ['name', 'slug']
    prepopulated_fields = {'slug': ('name',)}
    ordering = ['name']


class ProductVariantInline(admin.TabularInline):
    model = ProductVariant
    extra = 0
    fields = ['size', 'color', 'sku', 'stock', 'min_stock', 'price_modifier']


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ['name', 'slug', 'category', 'price', 'featured', 'is_active', 'created_at']
    list_filter = ['is_active', 'featured', 'category', 'created_at']
    search_fields = ['name', 'slug', 'description']
    ordering = ['name']
    readonly_fields = ['created_at', 'updated_at']
    inlines = [ProductVariantInline]


@admin.register(ProductVariant)
class ProductVariantAdmin(admin.ModelAdmin):
    list_display = ['product', 'size', 'color', 'sku', 'stock', 'min_stock']
    search_fields = ['sku', 'product__name']
    ordering = ['product', 'id']


@admin.register(Review)
class ReviewAdmin(admin.ModelAdmin):
    list_display = ['product', 'user', 'rating', 'created_at']
    list_filter = ['rating', 'created_at']
    search_fields = ['product__name', 'user__email', 'comment']
    ordering = ['-created_at']
