"""
团队、角色、组相关模型
"""

from django.db import models

from .base import BaseModel
from ..constants import MODULES, empty_permission_map


class Team(BaseModel):
    """团队模型"""

    name = models.CharField(
        max_length=255,
        help_text="团队名称"
    )
    tenant = models.ForeignKey(
        'Tenant',
        on_delete=models.CASCADE,
        related_name='teams',
        help_text="所属租户"
    )

    class Meta:
        db_table = 'tenant_console_team'
        constraints = [
            models.UniqueConstraint(fields=['tenant', 'name'], name='unique_team_name_per_tenant'),
        ]
        ordering = ['name']

    def __str__(self):
        return self.name


class Role(BaseModel):
    """角色 - 租户全局，模块 -> 权限集合"""

    name = models.CharField(
        max_length=255,
        help_text="角色名称"
    )
    description = models.TextField(
        blank=True,
        default='',
        help_text="角色描述"
    )
    tenant = models.ForeignKey(
        'Tenant',
        on_delete=models.CASCADE,
        related_name='roles',
        help_text="所属租户"
    )
    permissions = models.JSONField(
        default=empty_permission_map,
        help_text="模块权限 {vault: ['read'], financials: [], reporting: []}"
    )

    class Meta:
        db_table = 'tenant_console_role'
        constraints = [
            models.UniqueConstraint(fields=['tenant', 'name'], name='unique_role_name_per_tenant'),
        ]
        ordering = ['name']

    def __str__(self):
        return self.name

    def get_module_permissions(self, module):
        """获取角色在模块上的权限集合"""
        return set((self.permissions or {}).get(module, []))

    def has_permission(self, module, action):
        """检查是否具有特定权限"""
        return action in self.get_module_permissions(module)

    @property
    def permission_map(self):
        """补全所有模块的权限字典"""
        return {module: sorted(self.get_module_permissions(module)) for module in MODULES}


class Group(BaseModel):
    """组 - 在一个团队内把角色授予一批用户"""

    name = models.CharField(
        max_length=255,
        help_text="组名称"
    )
    description = models.TextField(
        blank=True,
        default='',
        help_text="组描述"
    )
    team = models.ForeignKey(
        Team,
        on_delete=models.CASCADE,
        related_name='groups',
        help_text="所属团队"
    )

    class Meta:
        db_table = 'tenant_console_group'
        constraints = [
            models.UniqueConstraint(fields=['team', 'name'], name='unique_group_name_per_team'),
        ]
        ordering = ['name']

    def __str__(self):
        return f"{self.name} ({self.team.name})"


class GroupRole(BaseModel):
    """组-角色关系"""

    group = models.ForeignKey(
        Group,
        on_delete=models.CASCADE,
        related_name='group_roles'
    )
    role = models.ForeignKey(
        Role,
        on_delete=models.CASCADE,
        related_name='group_roles'
    )

    class Meta:
        db_table = 'tenant_console_group_role'
        constraints = [
            models.UniqueConstraint(fields=['group', 'role'], name='unique_group_role'),
        ]

    def __str__(self):
        return f"{self.group.name} -> {self.role.name}"


class UserGroup(BaseModel):
    """用户-组关系，用户必须与组同属一个团队 (在分配时校验)"""

    user = models.ForeignKey(
        'User',
        on_delete=models.CASCADE,
        related_name='user_groups'
    )
    group = models.ForeignKey(
        Group,
        on_delete=models.CASCADE,
        related_name='user_groups'
    )

    class Meta:
        db_table = 'tenant_console_user_group'
        constraints = [
            models.UniqueConstraint(fields=['user', 'group'], name='unique_user_group'),
        ]

    def __str__(self):
        return f"{self.user.email} in {self.group.name}"
