# Homepage content and delivery toggles on the store settings row

from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('core', '0001_initial'),
    ]

    operations = [
        migrations.AddField(
            model_name='storesettings',
            name='free_delivery_enabled',
            field=models.BooleanField(default=True, help_text='Waive shipping at or above the threshold'),
        ),
        migrations.AddField(
            model_name='storesettings',
            name='always_free_delivery',
            field=models.BooleanField(default=False, help_text='No shipping fee on any order'),
        ),
        migrations.AddField(
            model_name='storesettings',
            name='hero_mode',
            field=models.CharField(choices=[('image', 'Single image'), ('slider', 'Slider')], default='image', max_length=10),
        ),
        migrations.AddField(
            model_name='storesettings',
            name='hero_image',
            field=models.URLField(blank=True, max_length=500, null=True),
        ),
        migrations.AddField(
            model_name='storesettings',
            name='hero_slider_images',
            field=models.JSONField(blank=True, default=list),
        ),
        migrations.AddField(
            model_name='storesettings',
            name='hero_title',
            field=models.CharField(default='Discover Quality Products at Amazing Prices', max_length=255),
        ),
        migrations.AddField(
            model_name='storesettings',
            name='hero_subtitle',
            field=models.TextField(blank=True, default='Shop the latest trends in electronics, fashion, home essentials, and more.'),
        ),
        migrations.AddField(
            model_name='storesettings',
            name='hero_show_text',
            field=models.BooleanField(default=True),
        ),
        migrations.AddField(
            model_name='storesettings',
            name='hero_show_badge',
            field=models.BooleanField(default=True),
        ),
        migrations.AddField(
            model_name='storesettings',
            name='hero_badge_text',
            field=models.CharField(blank=True, default='New Collection', max_length=100),
        ),
        migrations.AddField(
            model_name='storesettings',
            name='hero_show_button1',
            field=models.BooleanField(default=True),
        ),
        migrations.AddField(
            model_name='storesettings',
            name='hero_button1_text',
            field=models.CharField(blank=True, default='Shop Now', max_length=100),
        ),
        migrations.AddField(
            model_name='storesettings',
            name='hero_button1_link',
            field=models.CharField(blank=True, default='/products', max_length=255),
        ),
        migrations.AddField(
            model_name='storesettings',
            name='hero_show_button2',
            field=models.BooleanField(default=True),
        ),
        migrations.AddField(
            model_name='storesettings',
            name='hero_button2_text',
            field=models.CharField(blank=True, default='Explore Categories', max_length=100),
        ),
        migrations.AddField(
            model_name='storesettings',
            name='hero_button2_link',
            field=models.CharField(blank=True, default='/categories', max_length=255),
        ),
        migrations.AddField(
            model_name='storesettings',
            name='hero_image_width',
            field=models.PositiveIntegerField(default=1920),
        ),
        migrations.AddField(
            model_name='storesettings',
            name='hero_image_height',
            field=models.PositiveIntegerField(default=800),
        ),
        migrations.AddField(
            model_name='storesettings',
            name='feature_badges',
            field=models.JSONField(blank=True, default=list),
        ),
        migrations.AddField(
            model_name='storesettings',
            name='promo_banner_enabled',
            field=models.BooleanField(default=False),
        ),
        migrations.AddField(
            model_name='storesettings',
            name='promo_banner_image',
            field=models.URLField(blank=True, max_length=500, null=True),
        ),
        migrations.AddField(
            model_name='storesettings',
            name='promo_banner_link',
            field=models.CharField(blank=True, max_length=255, null=True),
        ),
        migrations.AddField(
            model_name='storesettings',
            name='promo_banner_width',
            field=models.PositiveIntegerField(default=1200),
        ),
        migrations.AddField(
            model_name='storesettings',
            name='promo_banner_height',
            field=models.PositiveIntegerField(default=300),
        ),
        migrations.AddField(
            model_name='storesettings',
            name='footer_brand_text',
            field=models.TextField(blank=True, null=True),
        ),
        migrations.AddField(
            model_name='storesettings',
            name='footer_email',
            field=models.EmailField(blank=True, max_length=254, null=True),
        ),
        migrations.AddField(
            model_name='storesettings',
            name='footer_phone',
            field=models.CharField(blank=True, max_length=50, null=True),
        ),
        migrations.AddField(
            model_name='storesettings',
            name='footer_address',
            field=models.TextField(blank=True, null=True),
        ),
        migrations.AddField(
            model_name='storesettings',
            name='footer_social_links',
            field=models.JSONField(blank=True, default=list),
        ),
        migrations.AddField(
            model_name='storesettings',
            name='product_badge1_enabled',
            field=models.BooleanField(default=True),
        ),
        migrations.AddField(
            model_name='storesettings',
            name='product_badge1_icon',
            field=models.CharField(blank=True, default='truck', max_length=50),
        ),
        migrations.AddField(
            model_name='storesettings',
            name='product_badge1_title',
            field=models.CharField(blank=True, default='Free Delivery', max_length=100),
        ),
        migrations.AddField(
            model_name='storesettings',
            name='product_badge1_subtitle',
            field=models.CharField(blank=True, default='On orders above the free delivery threshold', max_length=255),
        ),
        migrations.AddField(
            model_name='storesettings',
            name='product_badge2_enabled',
            field=models.BooleanField(default=True),
        ),
        migrations.AddField(
            model_name='storesettings',
            name='product_badge2_icon',
            field=models.CharField(blank=True, default='shield', max_length=50),
        ),
        migrations.AddField(
            model_name='storesettings',
            name='product_badge2_title',
            field=models.CharField(blank=True, default='Secure Payment', max_length=100),
        ),
        migrations.AddField(
            model_name='storesettings',
            name='product_badge2_subtitle',
            field=models.CharField(blank=True, default='Cash on delivery or bank transfer', max_length=255),
        ),
    ]
