"""
会话网关 - token -> 用户，所有受保护操作的入口检查
"""

import logging
from datetime import timedelta
from typing import Dict, Optional

import jwt
from django.core.exceptions import ValidationError as DjangoValidationError
from django.utils import timezone

from ..models import Session, User
from ..conf import console_settings
from ..constants import TOKEN_TYPE_SESSION
from ..exceptions import (
    AccountPendingVerificationError,
    ForbiddenError,
    UnauthenticatedError,
)
from .permission_service import PermissionService


logger = logging.getLogger(__name__)


class SessionService:
    """会话服务 - 签名过期 + 服务端撤销"""

    def __init__(self):
        self.secret_key = console_settings.SESSION_SECRET_KEY
        self.algorithm = console_settings.SESSION_ALGORITHM
        self.lifetime = console_settings.SESSION_LIFETIME
        self.permission_service = PermissionService()

    def create_session(self, user: User, ip_address: str = None, user_agent: str = None) -> Dict[str, object]:
        """
        创建会话并签发 token

        Args:
            user: 用户对象 (必须已持久化)
            ip_address: IP地址
            user_agent: User Agent

        Returns:
            Dict: token 与过期时间
        """
        now = timezone.now()
        expires_at = now + timedelta(seconds=self.lifetime)
        session = Session.objects.create(
            user=user,
            expires_at=expires_at,
            ip_address=ip_address,
            user_agent=user_agent,
        )

        payload = {
            'user_id': str(user.id),
            'sid': str(session.id),
            'token_type': TOKEN_TYPE_SESSION,
            'iat': int(now.timestamp()),
            'exp': int(expires_at.timestamp()),
        }
        token = jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

        logger.info(f"Session created: user={user.id}, session={session.id}")
        return {
            'token': token,
            'expires_at': expires_at,
            'session_id': str(session.id),
        }

    def resolve(self, token: Optional[str]) -> User:
        """
        从 token 获取用户

        Raises:
            UnauthenticatedError: token 缺失、无效、过期或已撤销
        """
        session = self._get_active_session(token)
        return session.user

    def logout(self, token: Optional[str]) -> bool:
        """
        撤销 token，幂等

        Returns:
            bool: 本次调用是否撤销了会话
        """
        if not token:
            return False

        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                options={'verify_exp': False},
            )
        except jwt.InvalidTokenError:
            return False

        revoked = Session.objects.filter(
            id=payload.get('sid'),
            revoked_at__isnull=True,
        ).update(revoked_at=timezone.now())

        if revoked:
            logger.info(f"Session revoked: session={payload.get('sid')}")
        return bool(revoked)

    def revoke_user_sessions(self, user: User) -> int:
        """撤销用户的所有会话"""
        count = Session.objects.filter(user=user, revoked_at__isnull=True).update(revoked_at=timezone.now())
        logger.info(f"Revoked {count} sessions for user={user.id}")
        return count

    def require_verified(self, token: Optional[str]) -> User:
        """已登录且已审核"""
        user = self.resolve(token)
        if not user.verified:
            raise AccountPendingVerificationError(
                "Account is pending verification. Please contact your administrator."
            )
        return user

    def require_admin(self, token: Optional[str]) -> User:
        """已审核的租户管理员"""
        user = self.require_verified(token)
        if not user.is_admin:
            raise ForbiddenError("Administrator access required")
        return user

    def authorize(self, token: Optional[str], module: str, action: str, scope_team_id=None) -> User:
        """
        模块操作的完整检查: 身份 -> 审核状态 -> 权限

        scope_team_id 为空时使用用户自己的团队
        """
        user = self.require_verified(token)
        if scope_team_id is None:
            scope_team_id = user.team_id
        self.permission_service.ensure(user, module, action, scope_team_id)
        return user

    def _get_active_session(self, token: Optional[str]) -> Session:
        if not token:
            raise UnauthenticatedError("Authentication required")

        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            raise UnauthenticatedError("Session has expired")
        except jwt.InvalidTokenError:
            raise UnauthenticatedError("Invalid session token")

        if payload.get('token_type') != TOKEN_TYPE_SESSION:
            raise UnauthenticatedError("Invalid token type")

        try:
            session = Session.objects.select_related('user').get(
                id=payload.get('sid'),
                user_id=payload.get('user_id'),
            )
        except (Session.DoesNotExist, DjangoValidationError, ValueError):
            raise UnauthenticatedError("Session not found")

        if session.is_revoked:
            raise UnauthenticatedError("Session has been revoked")
        if session.is_expired:
            raise UnauthenticatedError("Session has expired")

        return session
