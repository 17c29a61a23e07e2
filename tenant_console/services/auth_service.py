"""
认证服务 - 注册、OTP 登录、登出、当前用户、权限列表
"""

import logging
from typing import Dict, List, Optional

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction
from django.utils import timezone

from ..models import Tenant, User
from ..conf import console_settings
from ..exceptions import (
    EmailAlreadyExistsError,
    NotFoundError,
    UserNotFoundError,
    UserNotVerifiedError,
    ValidationError,
)
from .otp_service import OtpService
from .permission_service import PermissionService
from .session_service import SessionService


logger = logging.getLogger(__name__)


class AuthService:
    """认证服务"""

    def __init__(self):
        self.otp_service = OtpService()
        self.session_service = SessionService()
        self.permission_service = PermissionService()

    def register(self, email: str, tenant_id) -> User:
        """
        用户注册 - 创建未审核用户

        Args:
            email: 邮箱
            tenant_id: 租户ID

        Returns:
            User: 新用户

        Raises:
            NotFoundError: 租户不存在
            EmailAlreadyExistsError: 邮箱在该租户已存在
        """
        email = OtpService.normalize_email(email)

        try:
            tenant = Tenant.objects.get(id=tenant_id)
        except (Tenant.DoesNotExist, DjangoValidationError, ValueError):
            raise NotFoundError(f"Tenant not found: {tenant_id}")

        if User.objects.filter(tenant=tenant, email=email).exists():
            raise EmailAlreadyExistsError("Email already exists")

        try:
            with transaction.atomic():
                user = User.objects.create_user(email=email, tenant=tenant)
        except IntegrityError:
            raise EmailAlreadyExistsError("Email already exists")

        logger.info(f"User registered: {user.id} in tenant {tenant.id}")
        return user

    def request_otp(self, email: str) -> None:
        """发送登录验证码"""
        self.otp_service.request_code(email)

    def verify_otp(
        self,
        email: str,
        code: str,
        tenant_id=None,
        ip_address: str = None,
        user_agent: str = None
    ) -> Dict[str, object]:
        """
        校验验证码并创建会话，只为已存在的用户创建会话

        Returns:
            Dict: token, expires_at, user

        Raises:
            InvalidCodeError / ExpiredCodeError / CodeMismatchError: 验证码错误
            UserNotFoundError: 用户不存在
            UserNotVerifiedError: 用户未审核
        """
        email = self.otp_service.verify_code(email, code)
        user = self._find_user(email, tenant_id)

        if not user.verified and not console_settings.ALLOW_UNVERIFIED_LOGIN:
            logger.warning(f"Login rejected, user not verified: {user.id}")
            raise UserNotVerifiedError("Account is pending verification")

        user.last_login_at = timezone.now()
        user.save(update_fields=['last_login_at'])

        session = self.session_service.create_session(user, ip_address=ip_address, user_agent=user_agent)
        logger.info(f"User logged in: {user.id}")
        return {
            'token': session['token'],
            'expires_at': session['expires_at'],
            'user': user,
        }

    def logout(self, token: Optional[str]) -> None:
        self.session_service.logout(token)

    def current_user(self, token: Optional[str]) -> User:
        """身份检查接口，未审核用户也可以访问"""
        return self.session_service.resolve(token)

    def list_permissions(self, token: Optional[str], team_id=None) -> Dict[str, List[str]]:
        """
        当前用户在团队内的模块权限

        team_id 为空时使用用户自己的团队
        """
        user = self.session_service.resolve(token)
        scope_team_id = team_id if team_id is not None else user.team_id
        return self.permission_service.get_permissions(user, scope_team_id)

    def _find_user(self, email: str, tenant_id=None) -> User:
        try:
            users = User.objects.filter(email=email)
            if tenant_id is not None:
                users = users.filter(tenant_id=tenant_id)
            matches = list(users[:2])
        except (DjangoValidationError, ValueError):
            raise UserNotFoundError("User not found")
        if not matches:
            raise UserNotFoundError("User not found")
        if len(matches) > 1:
            raise ValidationError("Email is registered in several tenants; tenant is required")
        return matches[0]
