from rest_framework import serializers
from django.db import transaction
from django.db.models import Avg
from decimal import Decimal
from .models import Category, Product, ProductVariant, Review
from .utils import generate_unique_slug
from storefront.inventory.utils import stock_status


class CategorySerializer(serializers.ModelSerializer):
    slug = serializers.SlugField(required=False, allow_blank=True)
    product_count = serializers.SerializerMethodField()

    class Meta:
        model = Category
        fields = ['id', 'name', 'slug', 'description', 'image', 'product_count', 'created_at', 'updated_at']

    def get_product_count(self, obj):
        # Prefer the annotated value from the list view
        annotated = getattr(obj, 'annotated_product_count', None)
        if annotated is not None:
            return annotated
        return obj.products.filter(is_active=True).count()

    def validate(self, attrs):
        slug = attrs.get('slug')
        name = attrs.get('name') or (self.instance.name if self.instance else '')
        exclude_pk = self.instance.pk if self.instance else None
        if slug:
            if Category.objects.filter(slug=slug).exclude(pk=exclude_pk).exists():
                raise serializers.ValidationError({'slug': 'Category with this slug already exists'})
        elif not self.instance or 'slug' in attrs:
            attrs['slug'] = generate_unique_slug(Category, name, exclude_pk=exclude_pk)
        return attrs


class ProductVariantSerializer(serializers.ModelSerializer):
    id = serializers.IntegerField(required=False)
    label = serializers.CharField(read_only=True)
    unit_price = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)
    status = serializers.SerializerMethodField()

    class Meta:
        model = ProductVariant
        fields = [
            'id', 'name', 'size', 'color', 'sku', 'label',
            'stock', 'min_stock', 'status',
            'price', 'compare_price', 'price_modifier', 'unit_price', 'images',
            'created_at', 'updated_at'
        ]
        read_only_fields = ['created_at', 'updated_at']
        extra_kwargs = {
            # Uniqueness is checked against the other variants in ProductSerializer
            'sku': {'validators': []},
        }

    def get_status(self, obj):
        return stock_status(obj.stock, obj.min_stock)

    def validate_sku(self, value):
        return value or None


class ProductListSerializer(serializers.ModelSerializer):
    """Storefront product card"""
    category_name = serializers.CharField(source='category.name', read_only=True)
    category_slug = serializers.CharField(source='category.slug', read_only=True)
    in_stock = serializers.SerializerMethodField()

    class Meta:
        model = Product
        fields = [
            'id', 'name', 'slug', 'price', 'compare_price', 'images', 'featured',
            'category', 'category_name', 'category_slug', 'in_stock', 'created_at'
        ]

    def get_in_stock(self, obj):
        return any(variant.stock > 0 for variant in obj.variants.all())


class ProductSerializer(serializers.ModelSerializer):
    """Full product with variants; writes replace the variant list"""
    slug = serializers.SlugField(required=False, allow_blank=True)
    category_name = serializers.CharField(source='category.name', read_only=True)
    category_slug = serializers.CharField(source='category.slug', read_only=True)
    variants = ProductVariantSerializer(many=True, required=False)
    average_rating = serializers.SerializerMethodField()
    review_count = serializers.SerializerMethodField()

    class Meta:
        model = Product
        fields = [
            'id', 'name', 'slug', 'description', 'price', 'compare_price', 'images',
            'featured', 'is_active', 'category', 'category_name', 'category_slug',
            'variants', 'average_rating', 'review_count', 'created_at', 'updated_at'
        ]
        read_only_fields = ['created_at', 'updated_at']

    def get_average_rating(self, obj):
        avg = obj.reviews.aggregate(avg=Avg('rating'))['avg']
        return round(float(avg), 1) if avg is not None else 0

    def get_review_count(self, obj):
        return obj.reviews.count()

    def validate_images(self, value):
        if not isinstance(value, list) or not all(isinstance(url, str) for url in value):
            raise serializers.ValidationError("Images must be a list of URLs")
        return value

    def validate(self, attrs):
        exclude_pk = self.instance.pk if self.instance else None
        slug = attrs.get('slug')
        if slug:
            if Product.objects.filter(slug=slug).exclude(pk=exclude_pk).exists():
                raise serializers.ValidationError({'slug': 'Product with this slug already exists'})
        elif not self.instance or 'slug' in attrs:
            name = attrs.get('name') or (self.instance.name if self.instance else '')
            attrs['slug'] = generate_unique_slug(Product, name, exclude_pk=exclude_pk)

        compare_price = attrs.get('compare_price')
        price = attrs.get('price', self.instance.price if self.instance else None)
        if compare_price is not None and price is not None and compare_price < price:
            raise serializers.ValidationError({'compare_price': 'Compare price must not be lower than the price'})

        variants = attrs.get('variants')
        if variants is not None:
            skus = [v.get('sku') for v in variants if v.get('sku')]
            if len(skus) != len(set(skus)):
                raise serializers.ValidationError({'variants': 'Variant SKUs must be unique'})
            own_variant_ids = list(self.instance.variants.values_list('id', flat=True)) if self.instance else []
            clash = ProductVariant.objects.filter(sku__in=skus).exclude(id__in=own_variant_ids)
            if clash.exists():
                raise serializers.ValidationError({'variants': f'SKU already in use: {clash.first().sku}'})
            for variant in variants:
                if variant.get('price_modifier') is None:
                    variant['price_modifier'] = Decimal('0.00')
        return attrs

    @transaction.atomic
    def create(self, validated_data):
        variants_data = validated_data.pop('variants', [])
        product = Product.objects.create(**validated_data)
        for variant_data in variants_data:
            variant_data.pop('id', None)
            ProductVariant.objects.create(product=product, **variant_data)
        return product

    @transaction.atomic
    def update(self, instance, validated_data):
        variants_data = validated_data.pop('variants', None)
        instance = super().update(instance, validated_data)

        if variants_data is not None:
            existing = {variant.id: variant for variant in instance.variants.all()}
            incoming = [(variant_data.pop('id', None), variant_data) for variant_data in variants_data]
            keep_ids = {variant_id for variant_id, _ in incoming if variant_id in existing}

            # Variants left out of the payload are removed first, freeing their SKUs
            removed = [variant_id for variant_id in existing if variant_id not in keep_ids]
            if removed:
                ProductVariant.objects.filter(id__in=removed).delete()

            for variant_id, variant_data in incoming:
                if variant_id in keep_ids:
                    variant = existing[variant_id]
                    for field, value in variant_data.items():
                        setattr(variant, field, value)
                    variant.save()

            for variant_id, variant_data in incoming:
                if variant_id not in keep_ids:
                    ProductVariant.objects.create(product=instance, **variant_data)

        return instance


class ReviewSerializer(serializers.ModelSerializer):
    user_name = serializers.SerializerMethodField()

    class Meta:
        model = Review
        fields = ['id', 'product', 'user', 'user_name', 'rating', 'title', 'comment', 'created_at']
        read_only_fields = ['product', 'user', 'created_at']

    def get_user_name(self, obj):
        return obj.user.display_name

    def validate_rating(self, value):
        if value < 1 or value > 5:
            raise serializers.ValidationError("Rating must be between 1 and 5")
        return value

    def validate_comment(self, value):
        value = (value or '').strip()
        if len(value) < 10:
            raise serializers.ValidationError("Comment must be at least 10 characters")
        return value

    def validate_title(self, value):
        return (value or '').strip() or None
