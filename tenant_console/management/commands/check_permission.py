"""
检查用户的模块权限
"""

from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.management.base import BaseCommand, CommandError

from ...constants import MODULES, AVAILABLE_PERMISSIONS
from ...models import User
from ...services import PermissionService


class Command(BaseCommand):
    help = 'Check whether a user may perform an action on a module'

    def add_arguments(self, parser):
        parser.add_argument('--user-id', required=True, help='User ID')
        parser.add_argument('--module', required=True, choices=MODULES, help='Module')
        parser.add_argument('--action', choices=AVAILABLE_PERMISSIONS, help='Action; omit to list all permissions')
        parser.add_argument('--team-id', help='Team scope, defaults to the user\'s team')

    def handle(self, *args, **options):
        try:
            user = User.objects.select_related('team').get(id=options['user_id'])
        except (User.DoesNotExist, DjangoValidationError, ValueError):
            raise CommandError(f"User not found: {options['user_id']}")

        module = options['module']
        team_id = options.get('team_id') or None
        permission_service = PermissionService()

        if options.get('action'):
            action = options['action']
            if permission_service.can(user, module, action, team_id):
                self.stdout.write(self.style.SUCCESS(f"✅ {user.email} has '{action}' on '{module}'"))
            else:
                self.stdout.write(self.style.ERROR(f"❌ {user.email} has no '{action}' on '{module}'"))
            return

        granted = permission_service.get_permissions(user, team_id)[module]
        self.stdout.write(f"🔑 {user.email} on '{module}': {', '.join(granted) or '(none)'}")
