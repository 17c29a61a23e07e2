"""
Tenant Console 业务逻辑服务
"""

from .permission_service import PermissionService
from .otp_service import OtpService
from .session_service import SessionService
from .registry_service import RegistryService
from .resource_service import ResourceService
from .auth_service import AuthService

__all__ = [
    'PermissionService',
    'OtpService',
    'SessionService',
    'RegistryService',
    'ResourceService',
    'AuthService',
]
