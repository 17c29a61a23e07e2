"""
团队/组/角色注册表服务

所有操作都限定在调用方的租户内；多记录变更在同一个事务里完成。
"""

import logging
import uuid
from typing import Dict, List, Optional

from django.db import IntegrityError, transaction
from django.db.models import Count

from ..models import Tenant, User, Team, Role, Group, GroupRole, UserGroup
from ..exceptions import (
    AlreadyMemberError,
    NotFoundError,
    TeamMismatchError,
    ValidationError,
)
from .permission_service import PermissionService


logger = logging.getLogger(__name__)

UNSET = object()


class RegistryService:
    """注册表服务"""

    # ---- 租户 ----

    def create_tenant(self, name: str) -> Tenant:
        name = self._validate_name(name, 'Tenant')
        if Tenant.objects.filter(name__iexact=name).exists():
            raise ValidationError("Tenant name already exists")

        tenant = Tenant.objects.create(name=name)
        logger.info(f"Tenant created: {tenant.id} ({name})")
        return tenant

    def list_tenants(self) -> List[Tenant]:
        return list(Tenant.objects.order_by('name'))

    def get_tenant(self, tenant_id) -> Tenant:
        return self._get(Tenant.objects.all(), tenant_id, 'Tenant')

    # ---- 用户 ----

    def list_users(self, tenant: Tenant) -> List[User]:
        return list(User.objects.filter(tenant=tenant).select_related('team').order_by('email'))

    def list_unverified_users(self, tenant: Tenant) -> List[User]:
        return list(User.objects.filter(tenant=tenant, verified=False).order_by('created_at'))

    def get_user(self, tenant: Tenant, user_id) -> User:
        return self._get(User.objects.filter(tenant=tenant), user_id, 'User')

    def verify_user(self, tenant: Tenant, user_id) -> User:
        return self.update_user(tenant, user_id, verified=True)

    def update_user(self, tenant: Tenant, user_id, verified=UNSET, team_id=UNSET, is_admin=UNSET) -> User:
        """
        管理员更新用户: 审核状态、团队、管理员标记

        更换团队时在同一事务里移除用户在旧团队的组成员关系；
        取消审核时撤销该用户的所有会话。
        """
        with transaction.atomic():
            user = self._get(User.objects.select_for_update().filter(tenant=tenant), user_id, 'User')
            update_fields = []

            if team_id is not UNSET:
                new_team_id = None
                if team_id is not None:
                    new_team_id = self.get_team(tenant, team_id).id
                if new_team_id != user.team_id:
                    removed, _ = UserGroup.objects.filter(user=user).exclude(group__team_id=new_team_id).delete()
                    logger.info(f"User {user.id} moved from team {user.team_id} to {new_team_id}, memberships removed={removed}")
                    user.team_id = new_team_id
                    update_fields.append('team')

            if verified is not UNSET and bool(verified) != user.verified:
                user.verified = bool(verified)
                update_fields.append('verified')

            if is_admin is not UNSET and bool(is_admin) != user.is_admin:
                user.is_admin = bool(is_admin)
                update_fields.append('is_admin')

            if update_fields:
                user.save(update_fields=update_fields + ['updated_at'])

            if 'verified' in update_fields and not user.verified:
                from .session_service import SessionService
                SessionService().revoke_user_sessions(user)

        logger.info(f"User updated: {user.id}, fields={update_fields}")
        return user

    def delete_user(self, tenant: Tenant, user_id) -> None:
        """删除用户，组成员关系与会话级联删除"""
        user = self.get_user(tenant, user_id)
        with transaction.atomic():
            user.delete()
        logger.info(f"User deleted: {user_id}")

    # ---- 团队 ----

    def create_team(self, tenant: Tenant, name: str) -> Team:
        name = self._validate_name(name, 'Team')
        if Team.objects.filter(tenant=tenant, name=name).exists():
            raise ValidationError("Team name already exists")

        team = Team.objects.create(tenant=tenant, name=name)
        logger.info(f"Team created: {team.id} in tenant {tenant.id}")
        return team

    def update_team(self, tenant: Tenant, team_id, name: str) -> Team:
        team = self.get_team(tenant, team_id)
        name = self._validate_name(name, 'Team')
        if Team.objects.filter(tenant=tenant, name=name).exclude(id=team.id).exists():
            raise ValidationError("Team name already exists")

        team.name = name
        team.save(update_fields=['name', 'updated_at'])
        return team

    def delete_team(self, tenant: Tenant, team_id) -> Dict[str, int]:
        """
        删除团队: 级联删除组及其组-角色/用户-组关系和团队业务记录，
        团队用户的 team 置空

        Returns:
            Dict[str, int]: 受影响的数量
        """
        with transaction.atomic():
            team = self._get(Team.objects.select_for_update().filter(tenant=tenant), team_id, 'Team')
            groups = Group.objects.filter(team=team)
            stats = {
                'groups': groups.count(),
                'group_roles': GroupRole.objects.filter(group__team=team).count(),
                'user_groups': UserGroup.objects.filter(group__team=team).count(),
                'users': User.objects.filter(team=team).update(team=None),
            }
            team.delete()

        logger.info(f"Team deleted: {team_id}, stats={stats}")
        return stats

    def list_teams(self, tenant: Tenant) -> List[Team]:
        return list(
            Team.objects.filter(tenant=tenant)
            .annotate(
                user_count=Count('users', distinct=True),
                group_count=Count('groups', distinct=True),
            )
            .order_by('name')
        )

    def get_team(self, tenant: Tenant, team_id) -> Team:
        return self._get(Team.objects.filter(tenant=tenant), team_id, 'Team')

    # ---- 角色 ----

    def create_role(self, tenant: Tenant, name: str, description: str = '', permissions: Optional[Dict] = None) -> Role:
        name = self._validate_name(name, 'Role')
        if Role.objects.filter(tenant=tenant, name=name).exists():
            raise ValidationError("Role name already exists")

        role = Role.objects.create(
            tenant=tenant,
            name=name,
            description=description or '',
            permissions=PermissionService.normalize_permissions(permissions),
        )
        logger.info(f"Role created: {role.id} permissions={role.permissions}")
        return role

    def update_role(self, tenant: Tenant, role_id, name=UNSET, description=UNSET, permissions=UNSET) -> Role:
        role = self.get_role(tenant, role_id)

        if name is not UNSET:
            name = self._validate_name(name, 'Role')
            if Role.objects.filter(tenant=tenant, name=name).exclude(id=role.id).exists():
                raise ValidationError("Role name already exists")
            role.name = name
        if description is not UNSET:
            role.description = description or ''
        if permissions is not UNSET:
            role.permissions = PermissionService.normalize_permissions(permissions)

        role.save()
        logger.info(f"Role updated: {role.id} permissions={role.permissions}")
        return role

    def delete_role(self, tenant: Tenant, role_id) -> None:
        """删除角色，组-角色关系级联删除"""
        role = self.get_role(tenant, role_id)
        with transaction.atomic():
            role.delete()
        logger.info(f"Role deleted: {role_id}")

    def list_roles(self, tenant: Tenant) -> List[Role]:
        return list(Role.objects.filter(tenant=tenant).order_by('name'))

    def get_role(self, tenant: Tenant, role_id) -> Role:
        return self._get(Role.objects.filter(tenant=tenant), role_id, 'Role')

    # ---- 组 ----

    def create_group(self, tenant: Tenant, name: str, team_id, description: str = '') -> Group:
        team = self.get_team(tenant, team_id)
        name = self._validate_name(name, 'Group')
        if Group.objects.filter(team=team, name=name).exists():
            raise ValidationError("Group name already exists in this team")

        group = Group.objects.create(team=team, name=name, description=description or '')
        logger.info(f"Group created: {group.id} in team {team.id}")
        return group

    def update_group(self, tenant: Tenant, group_id, name=UNSET, description=UNSET) -> Group:
        group = self.get_group(tenant, group_id)

        if name is not UNSET:
            name = self._validate_name(name, 'Group')
            if Group.objects.filter(team=group.team, name=name).exclude(id=group.id).exists():
                raise ValidationError("Group name already exists in this team")
            group.name = name
        if description is not UNSET:
            group.description = description or ''

        group.save()
        return group

    def delete_group(self, tenant: Tenant, group_id) -> None:
        group = self.get_group(tenant, group_id)
        with transaction.atomic():
            group.delete()
        logger.info(f"Group deleted: {group_id}")

    def list_groups(self, tenant: Tenant, team_id=None) -> List[Group]:
        queryset = Group.objects.filter(team__tenant=tenant).select_related('team')
        if team_id is not None:
            queryset = queryset.filter(team=self.get_team(tenant, team_id))
        return list(
            queryset.prefetch_related('group_roles__role', 'user_groups__user').order_by('team__name', 'name')
        )

    def get_group(self, tenant: Tenant, group_id) -> Group:
        return self._get(Group.objects.filter(team__tenant=tenant).select_related('team'), group_id, 'Group')

    # ---- 关系 ----

    def add_user_to_group(self, tenant: Tenant, group_id, user_id) -> UserGroup:
        """
        添加组成员

        Raises:
            TeamMismatchError: 用户与组不在同一团队
            AlreadyMemberError: 已经是成员
        """
        with transaction.atomic():
            group = self.get_group(tenant, group_id)
            # 锁住用户行，避免团队变更插入在校验与写入之间
            user = self._get(User.objects.select_for_update().filter(tenant=tenant), user_id, 'User')

            if user.team_id != group.team_id:
                raise TeamMismatchError(f"User {user.email} is not a member of team {group.team.name}")

            if UserGroup.objects.filter(user=user, group=group).exists():
                raise AlreadyMemberError(f"User {user.email} is already in group {group.name}")

            try:
                with transaction.atomic():
                    membership = UserGroup.objects.create(user=user, group=group)
            except IntegrityError:
                raise AlreadyMemberError(f"User {user.email} is already in group {group.name}")

        logger.info(f"User {user.id} added to group {group.id}")
        return membership

    def remove_user_from_group(self, tenant: Tenant, group_id, user_id) -> None:
        group = self.get_group(tenant, group_id)
        deleted, _ = UserGroup.objects.filter(group=group, user_id=self._clean_id(user_id)).delete()
        if not deleted:
            raise NotFoundError("User is not a member of this group")
        logger.info(f"User {user_id} removed from group {group.id}")

    def add_role_to_group(self, tenant: Tenant, group_id, role_id) -> GroupRole:
        with transaction.atomic():
            group = self.get_group(tenant, group_id)
            role = self.get_role(tenant, role_id)

            if GroupRole.objects.filter(group=group, role=role).exists():
                raise AlreadyMemberError(f"Role {role.name} is already attached to group {group.name}")

            try:
                with transaction.atomic():
                    group_role = GroupRole.objects.create(group=group, role=role)
            except IntegrityError:
                raise AlreadyMemberError(f"Role {role.name} is already attached to group {group.name}")

        logger.info(f"Role {role.id} attached to group {group.id}")
        return group_role

    def remove_role_from_group(self, tenant: Tenant, group_id, role_id) -> None:
        group = self.get_group(tenant, group_id)
        deleted, _ = GroupRole.objects.filter(group=group, role_id=self._clean_id(role_id)).delete()
        if not deleted:
            raise NotFoundError("Role is not attached to this group")
        logger.info(f"Role {role_id} detached from group {group.id}")

    # ---- 工具 ----

    def _get(self, queryset, object_id, label: str):
        try:
            return queryset.get(id=self._clean_id(object_id))
        except queryset.model.DoesNotExist:
            raise NotFoundError(f"{label} not found: {object_id}")

    @staticmethod
    def _clean_id(object_id):
        """非法 UUID 按不存在处理"""
        try:
            return uuid.UUID(str(object_id))
        except (TypeError, ValueError, AttributeError):
            raise NotFoundError(f"Not found: {object_id}")

    @staticmethod
    def _validate_name(name: str, label: str) -> str:
        if not name or not str(name).strip():
            raise ValidationError(f"{label} name is required")
        name = str(name).strip()
        if len(name) > 255:
            raise ValidationError(f"{label} name is too long")
        return name
