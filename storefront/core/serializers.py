from rest_framework import serializers
from django.contrib.auth.password_validation import validate_password
from .models import User, StoreSettings, AuditLog


class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['id', 'username', 'email', 'name', 'phone', 'address', 'city', 'is_active', 'is_staff', 'created_at', 'updated_at']
        read_only_fields = ['is_staff', 'created_at', 'updated_at']


class UserCreateSerializer(serializers.ModelSerializer):
    username = serializers.CharField(required=False, allow_blank=True)
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, validators=[validate_password])
    password_confirm = serializers.CharField(write_only=True)

    class Meta:
        model = User
        fields = ['username', 'email', 'password', 'password_confirm', 'name', 'phone']

    def validate_email(self, value):
        value = value.lower()
        if User.objects.filter(email__iexact=value).exists():
            raise serializers.ValidationError("A user with this email already exists")
        return value

    def validate(self, attrs):
        if attrs['password'] != attrs['password_confirm']:
            raise serializers.ValidationError({"password": "Passwords don't match"})
        if not attrs.get('username'):
            attrs['username'] = attrs['email']
        if User.objects.filter(username__iexact=attrs['username']).exists():
            raise serializers.ValidationError({"username": "A user with this username already exists"})
        return attrs

    def create(self, validated_data):
        validated_data.pop('password_confirm')
        password = validated_data.pop('password')
        user = User.objects.create(**validated_data, is_active=True)
        user.set_password(password)
        user.save()
        return user


HOMEPAGE_CONTENT_FIELDS = [
    'hero_mode', 'hero_image', 'hero_slider_images', 'hero_title', 'hero_subtitle',
    'hero_show_text', 'hero_show_badge', 'hero_badge_text',
    'hero_show_button1', 'hero_button1_text', 'hero_button1_link',
    'hero_show_button2', 'hero_button2_text', 'hero_button2_link',
    'hero_image_width', 'hero_image_height',
    'feature_badges',
    'promo_banner_enabled', 'promo_banner_image', 'promo_banner_link',
    'promo_banner_width', 'promo_banner_height',
    'footer_brand_text', 'footer_email', 'footer_phone', 'footer_address', 'footer_social_links',
    'product_badge1_enabled', 'product_badge1_icon', 'product_badge1_title', 'product_badge1_subtitle',
    'product_badge2_enabled', 'product_badge2_icon', 'product_badge2_title', 'product_badge2_subtitle',
]

DELIVERY_FIELDS = [
    'free_shipping_threshold', 'shipping_fee', 'free_delivery_enabled', 'always_free_delivery',
]


def validate_object_list(value, required_keys, label):
    if not isinstance(value, list):
        raise serializers.ValidationError(f"{label} must be a list")
    for entry in value:
        if not isinstance(entry, dict) or any(not str(entry.get(key) or '').strip() for key in required_keys):
            raise serializers.ValidationError(f"Each {label.lower()} entry needs {' and '.join(required_keys)}")
    return value


class StoreSettingsSerializer(serializers.ModelSerializer):
    hero_slider_images = serializers.ListField(
        child=serializers.URLField(max_length=500), required=False,
        max_length=StoreSettings.MAX_SLIDER_IMAGES,
        error_messages={'max_length': f"Maximum {StoreSettings.MAX_SLIDER_IMAGES} slider images allowed"}
    )

    class Meta:
        model = StoreSettings
        fields = DELIVERY_FIELDS + [
            'bank_transfer_enabled', 'cod_enabled',
            'bank_name', 'account_title', 'account_number', 'iban', 'bank_instructions',
        ] + HOMEPAGE_CONTENT_FIELDS + ['updated_at']
        read_only_fields = ['updated_at']

    def validate_free_shipping_threshold(self, value):
        if value < 0:
            raise serializers.ValidationError("Free shipping threshold cannot be negative")
        return value

    def validate_shipping_fee(self, value):
        if value < 0:
            raise serializers.ValidationError("Shipping fee cannot be negative")
        return value

    def validate_feature_badges(self, value):
        return validate_object_list(value, ['icon', 'title'], 'Feature badges')

    def validate_footer_social_links(self, value):
        return validate_object_list(value, ['platform', 'url'], 'Social links')

    def validate(self, attrs):
        hero_mode = attrs.get('hero_mode', self.instance.hero_mode if self.instance else 'image')
        slider_images = attrs.get('hero_slider_images', self.instance.hero_slider_images if self.instance else [])
        if hero_mode == 'slider' and not slider_images:
            raise serializers.ValidationError({'hero_slider_images': 'Slider mode needs at least one image'})
        return attrs


class PaymentSettingsSerializer(serializers.ModelSerializer):
    """Public view of the settings needed to render checkout"""

    class Meta:
        model = StoreSettings
        fields = [
            'bank_transfer_enabled', 'cod_enabled',
            'bank_name', 'account_title', 'account_number', 'iban', 'bank_instructions',
        ] + DELIVERY_FIELDS
        read_only_fields = fields


class SiteContentSerializer(serializers.ModelSerializer):
    """Public homepage, footer and product badge content"""

    class Meta:
        model = StoreSettings
        fields = HOMEPAGE_CONTENT_FIELDS + DELIVERY_FIELDS
        read_only_fields = fields


class AuditLogSerializer(serializers.ModelSerializer):
    user = UserSerializer(read_only=True)

    class Meta:
        model = AuditLog
        fields = ['id', 'user', 'action', 'model_name', 'object_id', 'object_name',
                  'object_reference', 'changes', 'ip_address', 'created_at']


class BulkIdsSerializer(serializers.Serializer):
    """Body of the admin bulk-delete endpoints"""
    ids = serializers.ListField(
        child=serializers.IntegerField(min_value=1),
        allow_empty=False,
        error_messages={'required': 'No IDs provided', 'empty': 'No IDs provided'}
    )
