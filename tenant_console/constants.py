"""
Tenant Console 常量定义

所有枚举值在代码层面约束，不在数据库层面约束
"""

from typing import Dict, List

# 业务模块
MODULE_VAULT = 'vault'
MODULE_FINANCIALS = 'financials'
MODULE_REPORTING = 'reporting'

MODULES: List[str] = [MODULE_VAULT, MODULE_FINANCIALS, MODULE_REPORTING]

# 模块权限动作
ACTION_CREATE = 'create'
ACTION_READ = 'read'
ACTION_UPDATE = 'update'
ACTION_DELETE = 'delete'

AVAILABLE_PERMISSIONS: List[str] = [ACTION_CREATE, ACTION_READ, ACTION_UPDATE, ACTION_DELETE]


def empty_permission_map() -> Dict[str, List[str]]:
    """每个模块都存在，权限为空"""
    return {module: [] for module in MODULES}


# Session Token 类型
TOKEN_TYPE_SESSION = 'session'

# 默认设置
DEFAULT_OTP_LENGTH = 6
DEFAULT_OTP_LIFETIME = 600  # 10分钟
DEFAULT_SESSION_LIFETIME = 60 * 60 * 8  # 8小时
DEFAULT_SESSION_COOKIE_NAME = 'console_session'

# OTP 摘要使用的 key salt
OTP_HASH_SALT = 'tenant_console.otp'


# HTTP 状态码
class HttpStatus:
    OK = 200
    CREATED = 201
    NO_CONTENT = 204
    BAD_REQUEST = 400
    UNAUTHORIZED = 401
    FORBIDDEN = 403
    NOT_FOUND = 404
    CONFLICT = 409
    INTERNAL_SERVER_ERROR = 500


# 错误代码
class ErrorCode:
    # 认证错误
    UNAUTHENTICATED = 'unauthenticated'
    INVALID_CODE = 'invalid_code'
    CODE_MISMATCH = 'code_mismatch'
    EXPIRED_CODE = 'expired_code'
    USER_NOT_FOUND = 'user_not_found'
    USER_NOT_VERIFIED = 'user_not_verified'

    # 权限错误
    ACCOUNT_PENDING_VERIFICATION = 'account_pending_verification'
    FORBIDDEN = 'forbidden'

    # 注册表错误
    NOT_FOUND = 'not_found'
    TEAM_MISMATCH = 'team_mismatch'
    ALREADY_MEMBER = 'already_member'
    EMAIL_ALREADY_EXISTS = 'email_already_exists'

    # 验证错误
    VALIDATION_ERROR = 'validation_error'
    INVALID_ARGUMENT = 'invalid_argument'

    CONFIGURATION_ERROR = 'configuration_error'
