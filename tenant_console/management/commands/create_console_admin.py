"""
创建 Tenant Console 管理员
"""

from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.management.base import BaseCommand, CommandError
from django.core.validators import validate_email
from django.db import transaction

from ...models import Tenant, User


class Command(BaseCommand):
    help = 'Create a Tenant Console administrator (and the tenant if needed)'

    def add_arguments(self, parser):
        parser.add_argument(
            '--tenant',
            type=str,
            help='Tenant name, created when missing'
        )
        parser.add_argument(
            '--email',
            type=str,
            help='Email address for the administrator'
        )
        parser.add_argument(
            '--tenant-only',
            action='store_true',
            help='Only create the tenant'
        )

    def handle(self, *args, **options):
        """执行创建"""
        tenant_name = options.get('tenant')
        email = options.get('email')

        # 交互式输入
        if not tenant_name:
            tenant_name = input('Tenant: ').strip()
        if not tenant_name:
            raise CommandError("Tenant is required")

        if not options['tenant_only']:
            if not email:
                email = input('Email: ').strip()
            if not email:
                raise CommandError("Email is required")
            try:
                validate_email(email)
            except DjangoValidationError:
                raise CommandError("Invalid email format")
            email = email.strip().lower()

        with transaction.atomic():
            tenant, created = Tenant.objects.get_or_create(name=tenant_name)
            if created:
                self.stdout.write(f"🏢 Tenant created: {tenant.name} ({tenant.id})")
            else:
                self.stdout.write(f"🏢 Using tenant: {tenant.name} ({tenant.id})")

            if options['tenant_only']:
                return

            user = User.objects.filter(tenant=tenant, email=email).first()
            if user is None:
                self.stdout.write(f"🚀 Creating administrator: {email}")
                user = User.objects.create_admin(email=email, tenant=tenant)
            elif user.is_admin and user.verified:
                self.stdout.write(self.style.WARNING(f'⚠️  User "{email}" is already an administrator'))
                return
            else:
                self.stdout.write(f"🚀 Promoting existing user: {email}")
                user.verified = True
                user.is_admin = True
                user.save(update_fields=['verified', 'is_admin', 'updated_at'])

        self.stdout.write(self.style.SUCCESS('✅ Administrator ready!'))
        self.stdout.write(f"   ID: {user.id}")
        self.stdout.write(f"   Email: {user.email}")
        self.stdout.write(f"   Tenant: {tenant.name}")
        self.stdout.write("   Sign in with a one-time code sent to this address")
