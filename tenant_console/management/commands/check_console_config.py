"""
检查 Tenant Console 配置
"""

from django.apps import apps
from django.core.exceptions import ImproperlyConfigured
from django.core.management.base import BaseCommand, CommandError
from django.db import connection
from django.db.utils import DatabaseError

from ...conf import console_settings


class Command(BaseCommand):
    help = 'Check Tenant Console configuration'

    def handle(self, *args, **options):
        """执行配置检查"""
        self.stdout.write("🔍 Checking Tenant Console configuration...")
        self.stdout.write("="*60)

        secret_key = console_settings.SESSION_SECRET_KEY or ''

        self.stdout.write("\n📋 Session:")
        self.stdout.write(f"  🔐 Secret Key: {'✅ Set' if secret_key else '❌ Missing'}")
        self.stdout.write(f"  🧮 Algorithm: {console_settings.SESSION_ALGORITHM}")
        self.stdout.write(f"  🕐 Lifetime: {console_settings.SESSION_LIFETIME}s")
        self.stdout.write(f"  🍪 Cookie: {console_settings.SESSION_COOKIE_NAME}")

        self.stdout.write("\n📧 One-time codes:")
        self.stdout.write(f"  🔢 Length: {console_settings.OTP_LENGTH}")
        self.stdout.write(f"  🕐 Lifetime: {console_settings.OTP_LIFETIME}s")
        self.stdout.write(f"  📮 From: {console_settings.OTP_EMAIL_FROM}")
        self.stdout.write(f"  ⚡ Async delivery: {console_settings.OTP_ASYNC_DELIVERY}")

        self.stdout.write("\n⚙️  Features:")
        self.stdout.write(f"  🚪 Allow unverified login: {console_settings.ALLOW_UNVERIFIED_LOGIN}")

        try:
            console_settings.validate()
        except ImproperlyConfigured as e:
            self.stdout.write(self.style.ERROR(f"\n❌ {e}"))
            raise CommandError(f"Configuration check failed: {e}")

        if len(secret_key) < 32:
            self.stdout.write("\n🔐 Session Secret Key:")
            self.stdout.write(f"  ⚠️  Length: {len(secret_key)} (recommended: 32+)")

        self.stdout.write("\n🗂️  Database Tables:")
        try:
            tables = set(connection.introspection.table_names())
        except DatabaseError as e:
            self.stdout.write("  ❌ Connection failed")
            raise CommandError(f"Database connection failed: {e}")

        missing = 0
        for model in apps.get_app_config('tenant_console').get_models():
            table = model._meta.db_table
            found = table in tables
            missing += not found
            self.stdout.write(f"    {'✅' if found else '❌'} {table}")
        if missing:
            self.stdout.write("  💡 Run 'python manage.py init_console' to create the tables")

        self.stdout.write(f"\n{'='*60}")
        self.stdout.write(self.style.SUCCESS('✅ Configuration check completed!'))
