"""
Tenant Console serializers for REST API endpoints.

字段名与前端一致 (camelCase)，输入校验在这里，业务规则在服务层。
"""

from rest_framework import serializers

from ..constants import MODULES, AVAILABLE_PERMISSIONS
from ..models import (
    Tenant, User, Team, Role, Group, GroupRole, UserGroup,
    Secret, Transaction, Report,
)


# ===== 认证 =====

class RegisterSerializer(serializers.Serializer):
    email = serializers.EmailField()
    tenantId = serializers.UUIDField()

    def validate_email(self, value):
        return value.strip().lower()


class RequestOtpSerializer(serializers.Serializer):
    email = serializers.EmailField()

    def validate_email(self, value):
        return value.strip().lower()


class VerifyOtpSerializer(serializers.Serializer):
    email = serializers.EmailField()
    code = serializers.RegexField(r'^\d{4,10}$')
    tenantId = serializers.UUIDField(required=False, allow_null=True)

    def validate_email(self, value):
        return value.strip().lower()


# ===== 注册表输出 =====

class TenantSerializer(serializers.ModelSerializer):
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)

    class Meta:
        model = Tenant
        fields = ['id', 'name', 'createdAt', 'updatedAt']


class TeamSerializer(serializers.ModelSerializer):
    tenantId = serializers.UUIDField(source='tenant_id', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)
    _count = serializers.SerializerMethodField()

    class Meta:
        model = Team
        fields = ['id', 'name', 'tenantId', 'createdAt', 'updatedAt', '_count']

    def get__count(self, obj):
        # list_teams 会 annotate 计数
        return {
            'users': getattr(obj, 'user_count', None),
            'groups': getattr(obj, 'group_count', None),
        }


class UserSerializer(serializers.ModelSerializer):
    tenantId = serializers.UUIDField(source='tenant_id', read_only=True)
    teamId = serializers.UUIDField(source='team_id', read_only=True, allow_null=True)
    isAdmin = serializers.BooleanField(source='is_admin', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)

    class Meta:
        model = User
        fields = ['id', 'email', 'verified', 'isAdmin', 'tenantId', 'teamId', 'createdAt', 'updatedAt']


class RoleSerializer(serializers.ModelSerializer):
    permissions = serializers.SerializerMethodField()
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)

    class Meta:
        model = Role
        fields = ['id', 'name', 'description', 'permissions', 'createdAt', 'updatedAt']

    def get_permissions(self, obj):
        return obj.permission_map


class GroupRoleSerializer(serializers.ModelSerializer):
    groupId = serializers.UUIDField(source='group_id', read_only=True)
    roleId = serializers.UUIDField(source='role_id', read_only=True)
    role = RoleSerializer(read_only=True)

    class Meta:
        model = GroupRole
        fields = ['id', 'groupId', 'roleId', 'role']


class UserGroupSerializer(serializers.ModelSerializer):
    userId = serializers.UUIDField(source='user_id', read_only=True)
    groupId = serializers.UUIDField(source='group_id', read_only=True)
    user = UserSerializer(read_only=True)

    class Meta:
        model = UserGroup
        fields = ['id', 'userId', 'groupId', 'user']


class GroupSerializer(serializers.ModelSerializer):
    teamId = serializers.UUIDField(source='team_id', read_only=True)
    team = TeamSerializer(read_only=True)
    groupRoles = GroupRoleSerializer(source='group_roles', many=True, read_only=True)
    userGroups = UserGroupSerializer(source='user_groups', many=True, read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)

    class Meta:
        model = Group
        fields = [
            'id', 'name', 'description', 'teamId', 'team',
            'groupRoles', 'userGroups', 'createdAt', 'updatedAt',
        ]


# ===== 注册表输入 =====

class NameSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)


class PermissionMapField(serializers.DictField):
    """模块 -> 权限列表"""

    child = serializers.ListField(child=serializers.ChoiceField(choices=AVAILABLE_PERMISSIONS))

    def to_internal_value(self, data):
        value = super().to_internal_value(data)
        unknown = [module for module in value if module not in MODULES]
        if unknown:
            raise serializers.ValidationError(f"Unknown module: {', '.join(unknown)}")
        return value


class RoleInputSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, allow_blank=True, default='')
    permissions = PermissionMapField(required=False, default=dict)


class GroupInputSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, allow_blank=True, default='')
    teamId = serializers.UUIDField()


class GroupUpdateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255, required=False)
    description = serializers.CharField(required=False, allow_blank=True)


class UserUpdateSerializer(serializers.Serializer):
    verified = serializers.BooleanField(required=False)
    teamId = serializers.UUIDField(required=False, allow_null=True)
    isAdmin = serializers.BooleanField(required=False)


class UserIdSerializer(serializers.Serializer):
    userId = serializers.UUIDField()


class RoleIdSerializer(serializers.Serializer):
    roleId = serializers.UUIDField()


# ===== 业务模块 =====

class TeamScopedSerializer(serializers.ModelSerializer):
    teamId = serializers.UUIDField(source='team_id', read_only=True)
    createdBy = serializers.UUIDField(source='created_by_id', read_only=True, allow_null=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)

    SCOPED_FIELDS = ['id', 'teamId', 'createdBy', 'createdAt', 'updatedAt']


class SecretSerializer(TeamScopedSerializer):

    class Meta:
        model = Secret
        fields = ['name', 'value'] + TeamScopedSerializer.SCOPED_FIELDS


class TransactionSerializer(TeamScopedSerializer):

    class Meta:
        model = Transaction
        fields = ['amount', 'description'] + TeamScopedSerializer.SCOPED_FIELDS


class ReportSerializer(TeamScopedSerializer):

    class Meta:
        model = Report
        fields = ['title', 'content'] + TeamScopedSerializer.SCOPED_FIELDS


# ===== 业务模块输入 =====

class SecretInputSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    value = serializers.CharField()


class TransactionInputSerializer(serializers.Serializer):
    # 与 Transaction.amount 一致，NaN / Infinity / 超出位数都会被拒绝
    amount = serializers.DecimalField(max_digits=14, decimal_places=2)
    description = serializers.CharField(max_length=500, required=False, allow_blank=True)


class ReportInputSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=255)
    content = serializers.CharField(required=False, allow_blank=True)
