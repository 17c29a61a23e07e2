"""
Tenant Console 自定义异常
"""

from typing import Optional

from .constants import ErrorCode, HttpStatus


class TenantConsoleError(Exception):
    """Tenant Console 基础异常"""
    default_code = 'error'
    status_code = HttpStatus.BAD_REQUEST

    def __init__(self, message: str, error_code: Optional[str] = None):
        self.message = message
        self.error_code = error_code or self.default_code
        super().__init__(message)


class AuthenticationError(TenantConsoleError):
    """认证错误基类"""
    default_code = ErrorCode.UNAUTHENTICATED
    status_code = HttpStatus.UNAUTHORIZED


class UnauthenticatedError(AuthenticationError):
    """会话缺失、无效、过期或已撤销"""
    pass


class InvalidCodeError(AuthenticationError):
    """没有可用的验证码"""
    default_code = ErrorCode.INVALID_CODE
    status_code = HttpStatus.BAD_REQUEST


class CodeMismatchError(InvalidCodeError):
    """验证码不匹配"""
    default_code = ErrorCode.CODE_MISMATCH


class ExpiredCodeError(AuthenticationError):
    """验证码过期"""
    default_code = ErrorCode.EXPIRED_CODE
    status_code = HttpStatus.BAD_REQUEST


class UserNotFoundError(AuthenticationError):
    """用户不存在错误"""
    default_code = ErrorCode.USER_NOT_FOUND
    status_code = HttpStatus.NOT_FOUND


class UserNotVerifiedError(AuthenticationError):
    """用户未通过管理员审核"""
    default_code = ErrorCode.USER_NOT_VERIFIED
    status_code = HttpStatus.FORBIDDEN


class AuthorizationError(TenantConsoleError):
    """授权错误基类"""
    default_code = ErrorCode.FORBIDDEN
    status_code = HttpStatus.FORBIDDEN


class AccountPendingVerificationError(AuthorizationError):
    """已登录但账号尚未审核"""
    default_code = ErrorCode.ACCOUNT_PENDING_VERIFICATION


class ForbiddenError(AuthorizationError):
    """已审核但没有对应模块权限"""
    pass


class RegistryError(TenantConsoleError):
    """团队/组/角色注册表错误基类"""
    status_code = HttpStatus.CONFLICT


class NotFoundError(RegistryError):
    """记录或关系不存在"""
    default_code = ErrorCode.NOT_FOUND
    status_code = HttpStatus.NOT_FOUND


class TeamMismatchError(RegistryError):
    """用户与组不属于同一团队"""
    default_code = ErrorCode.TEAM_MISMATCH


class AlreadyMemberError(RegistryError):
    """关系已存在"""
    default_code = ErrorCode.ALREADY_MEMBER


class EmailAlreadyExistsError(RegistryError):
    """邮箱已存在错误"""
    default_code = ErrorCode.EMAIL_ALREADY_EXISTS


class ValidationError(TenantConsoleError):
    """验证错误"""
    default_code = ErrorCode.VALIDATION_ERROR


class InvalidArgumentError(ValidationError):
    """未知的模块或权限动作"""
    default_code = ErrorCode.INVALID_ARGUMENT


class ConfigurationError(TenantConsoleError):
    """配置错误"""
    default_code = ErrorCode.CONFIGURATION_ERROR
    status_code = HttpStatus.INTERNAL_SERVER_ERROR
