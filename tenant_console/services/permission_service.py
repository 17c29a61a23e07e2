"""
权限解析服务 - 用户 -> 组 -> 角色 -> 模块权限

每次检查都重新计算，没有缓存，也没有跨调用共享的可变状态。
"""

import logging
from typing import Dict, List, Optional

from ..models import Role, User
from ..constants import MODULES, AVAILABLE_PERMISSIONS, empty_permission_map
from ..exceptions import ForbiddenError, InvalidArgumentError


logger = logging.getLogger(__name__)


class PermissionService:
    """权限解析服务"""

    def can(self, user: User, module: str, action: str, scope_team_id=None) -> bool:
        """
        权限检查

        Args:
            user: 用户对象
            module: 模块 ('vault', 'financials', 'reporting')
            action: 权限动作 ('create', 'read', 'update', 'delete')
            scope_team_id: 团队范围 (可选)

        Returns:
            bool: 是否有权限

        Raises:
            InvalidArgumentError: 未知的模块或权限动作
        """
        self._validate_module(module)
        self._validate_action(action)

        if not self._passes_gates(user, scope_team_id):
            return False

        return action in self._collect_module_permissions(user, module)

    def ensure(self, user: User, module: str, action: str, scope_team_id=None) -> None:
        """权限检查，没有权限时抛出 ForbiddenError"""
        if not self.can(user, module, action, scope_team_id):
            logger.info(f"Permission denied: user={user.id}, module={module}, action={action}, team={scope_team_id}")
            raise ForbiddenError(f"No '{action}' access to module '{module}'")

    def check_permissions(self, user: User, module: str, actions: List[str], scope_team_id=None) -> Dict[str, bool]:
        """
        批量权限检查 - 一次查询检查多个权限

        Returns:
            Dict[str, bool]: 权限检查结果
        """
        self._validate_module(module)
        for action in actions:
            self._validate_action(action)

        if not self._passes_gates(user, scope_team_id):
            return {action: False for action in actions}

        granted = self._collect_module_permissions(user, module)
        return {action: (action in granted) for action in actions}

    def get_permissions(self, user: User, scope_team_id=None) -> Dict[str, List[str]]:
        """
        获取用户在所有模块上的有效权限

        Returns:
            Dict[str, List[str]]: {module: 排序后的权限列表}，每个模块都存在
        """
        result = empty_permission_map()
        if not self._passes_gates(user, scope_team_id):
            return result

        for permissions in self._role_permission_maps(user):
            for module in MODULES:
                result[module].extend(permissions.get(module, []))

        return {module: sorted(set(actions)) for module, actions in result.items()}

    def _passes_gates(self, user: User, scope_team_id) -> bool:
        """未审核、跨团队、无团队都直接拒绝"""
        if not user.verified:
            return False

        if scope_team_id is not None and str(scope_team_id) != str(user.team_id):
            return False

        return user.team_id is not None

    def _collect_module_permissions(self, user: User, module: str) -> set:
        granted = set()
        for permissions in self._role_permission_maps(user):
            granted.update(permissions.get(module, []))
        return granted

    def _role_permission_maps(self, user: User):
        """用户所在组挂载的所有角色的权限字典"""
        return (
            Role.objects.filter(
                group_roles__group__user_groups__user_id=user.id,
                group_roles__group__team_id=user.team_id,
            )
            .distinct()
            .values_list('permissions', flat=True)
        )

    @staticmethod
    def _validate_module(module: str):
        if module not in MODULES:
            raise InvalidArgumentError(f"Unknown module: {module}")

    @staticmethod
    def _validate_action(action: str):
        if action not in AVAILABLE_PERMISSIONS:
            raise InvalidArgumentError(f"Invalid permission action: {action}")

    @staticmethod
    def normalize_permissions(permissions: Optional[Dict]) -> Dict[str, List[str]]:
        """
        规范化角色权限：补全所有模块、去重、排序

        Raises:
            InvalidArgumentError: 未知的模块或权限动作
        """
        if permissions is None:
            return empty_permission_map()
        if not isinstance(permissions, dict):
            raise InvalidArgumentError("Permissions must be a mapping of module to actions")

        normalized = empty_permission_map()
        for module, actions in permissions.items():
            PermissionService._validate_module(module)
            if isinstance(actions, str) or not hasattr(actions, '__iter__'):
                raise InvalidArgumentError(f"Permissions for '{module}' must be a list")
            for action in actions:
                PermissionService._validate_action(action)
            normalized[module] = sorted(set(actions))
        return normalized
