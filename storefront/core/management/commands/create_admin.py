"""
Management command to create (or promote) a staff user for the admin API
Usage: python manage.py create_admin --email admin@example.com [--password ...] [--name ...]
"""
import getpass

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError


class Command(BaseCommand):
    help = "Creates an admin (staff) user, or promotes an existing user to staff"

    def add_arguments(self, parser):
        parser.add_argument('--email', type=str, help='Admin email (also used as username)')
        parser.add_argument('--password', type=str, help='Password (prompted for when omitted)')
        parser.add_argument('--name', type=str, default='', help='Display name')
        parser.add_argument(
            '--superuser',
            action='store_true',
            help='Also grant Django superuser rights',
        )

    def handle(self, *args, **options):
        User = get_user_model()

        email = (options.get('email') or '').strip().lower()
        if not email:
            email = input('Email: ').strip().lower()
        if not email:
            raise CommandError("Email is required")

        existing = User.objects.filter(email__iexact=email).first()
        if existing:
            existing.is_staff = True
            if options['superuser']:
                existing.is_superuser = True
            existing.save(update_fields=['is_staff', 'is_superuser'])
            self.stdout.write(self.style.SUCCESS(f"Existing user {existing.email} promoted to admin (ID: {existing.id})"))
            return

        password = options.get('password') or getpass.getpass('Password: ')
        if not password or len(password) < 6:
            raise CommandError("Password must be at least 6 characters")

        user = User.objects.create_user(
            username=email,
            email=email,
            password=password,
            name=options.get('name') or '',
            is_staff=True,
            is_superuser=options['superuser'],
        )

        self.stdout.write(self.style.SUCCESS("Admin user created successfully!"))
        self.stdout.write(f"   ID: {user.id}")
        self.stdout.write(f"   Email: {user.email}")
        self.stdout.write(f"   Name: {user.name or '(not set)'}")
