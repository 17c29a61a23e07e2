"""
初始化 Tenant Console
"""

from django.apps import apps
from django.core.management import call_command
from django.core.management.base import BaseCommand, CommandError
from django.core.exceptions import ImproperlyConfigured
from django.db import connection

from ...conf import console_settings


class Command(BaseCommand):
    help = 'Initialize Tenant Console - 一键式初始化'

    def add_arguments(self, parser):
        parser.add_argument(
            '--tenant',
            type=str,
            help='Create a tenant with this name'
        )
        parser.add_argument(
            '--admin-email',
            type=str,
            help='Create a verified administrator in the tenant'
        )
        parser.add_argument(
            '--skip-tables',
            action='store_true',
            help='Do not create database tables'
        )

    def handle(self, *args, **options):
        """执行初始化"""
        if options['admin_email'] and not options['tenant']:
            raise CommandError("--admin-email requires --tenant")

        # 1. 检查基本配置
        self.stdout.write("🔍 Checking configuration...")
        try:
            console_settings.validate()
        except ImproperlyConfigured as e:
            raise CommandError(f"Configuration error: {e}")
        self.stdout.write("✅ Configuration checked")

        # 2. 执行迁移
        if not options['skip_tables']:
            self.stdout.write("🏗️  Applying migrations...")
            call_command('migrate', verbosity=0)
            self.stdout.write("✅ Database tables created")

        # 3. 验证安装
        self.stdout.write("🔍 Verifying installation...")
        missing = self._missing_tables()
        if missing:
            raise CommandError(f"Tables do not exist: {', '.join(missing)}")
        self.stdout.write("✅ Installation verified")

        # 4. 可选: 初始租户与管理员
        if options['tenant']:
            call_command(
                'create_console_admin',
                tenant=options['tenant'],
                email=options['admin_email'],
                tenant_only=not options['admin_email'],
                stdout=self.stdout,
            )

        self.stdout.write(
            self.style.SUCCESS('\n🎉 Tenant Console initialized successfully!')
        )
        self._show_usage_guide()

    def _missing_tables(self):
        existing = set(connection.introspection.table_names())
        config = apps.get_app_config('tenant_console')
        return [
            model._meta.db_table
            for model in config.get_models()
            if model._meta.db_table not in existing
        ]

    def _show_usage_guide(self):
        """显示使用指南"""
        self.stdout.write('\n' + '='*60)
        self.stdout.write('📖 USAGE GUIDE')
        self.stdout.write('='*60)
        self.stdout.write('\n1. Add to urls.py:')
        self.stdout.write('   urlpatterns = [')
        self.stdout.write('       path("api/", include("tenant_console.api.urls")),')
        self.stdout.write('   ]')
        self.stdout.write('\n2. Create an administrator:')
        self.stdout.write('   python manage.py create_console_admin --tenant Acme --email admin@acme.test')
        self.stdout.write('\n3. Check status:')
        self.stdout.write('   python manage.py check_console_config')
        self.stdout.write('\n' + '='*60)
