"""
Tenant Console - 极简配置
只需要 SECRET_KEY，其他都有默认值
"""

from decouple import config as env_config
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

from .constants import (
    DEFAULT_OTP_LENGTH,
    DEFAULT_OTP_LIFETIME,
    DEFAULT_SESSION_LIFETIME,
    DEFAULT_SESSION_COOKIE_NAME,
)


class ConsoleSettings:
    """
    极简配置类 - 大部分配置都有智能默认值

    查找顺序: settings.TENANT_CONSOLE -> DEFAULTS -> 环境变量 TENANT_CONSOLE_<NAME>
    """

    DEFAULTS = {
        # Session 配置
        'SESSION_SECRET_KEY': None,  # 默认使用Django的SECRET_KEY
        'SESSION_ALGORITHM': 'HS256',
        'SESSION_LIFETIME': DEFAULT_SESSION_LIFETIME,
        'SESSION_COOKIE_NAME': DEFAULT_SESSION_COOKIE_NAME,

        # OTP 配置
        'OTP_LENGTH': DEFAULT_OTP_LENGTH,
        'OTP_LIFETIME': DEFAULT_OTP_LIFETIME,
        'OTP_ASYNC_DELIVERY': False,  # 开启后通过Celery投递验证码邮件
        'OTP_EMAIL_FROM': None,  # 默认使用DEFAULT_FROM_EMAIL
        'OTP_EMAIL_SUBJECT': 'Your sign-in code',

        # 功能开关
        'ALLOW_UNVERIFIED_LOGIN': False,
    }

    @property
    def user_settings(self):
        # 每次读取，兼容 override_settings
        return getattr(settings, 'TENANT_CONSOLE', {})

    def __getattr__(self, name):
        """智能配置获取"""
        if name.startswith('_'):
            raise AttributeError(name)

        # 1. 先检查用户是否显式配置
        if name in self.user_settings:
            return self.user_settings[name]

        if name not in self.DEFAULTS:
            raise AttributeError(f"'{self.__class__.__name__}' object has no attribute '{name}'")

        # 2. 环境变量，按默认值类型转换
        default_value = self.DEFAULTS[name]
        env_key = f'TENANT_CONSOLE_{name}'
        if isinstance(default_value, bool):
            value = env_config(env_key, default=default_value, cast=bool)
        elif isinstance(default_value, int):
            value = env_config(env_key, default=default_value, cast=int)
        else:
            value = env_config(env_key, default=default_value)

        # 3. 特殊默认值
        if value is None and name == 'SESSION_SECRET_KEY':
            value = getattr(settings, 'SECRET_KEY', '')
        if value is None and name == 'OTP_EMAIL_FROM':
            value = getattr(settings, 'DEFAULT_FROM_EMAIL', 'webmaster@localhost')
        return value

    def validate(self):
        """只验证必需的配置"""
        if not self.SESSION_SECRET_KEY:
            raise ImproperlyConfigured(
                "TENANT_CONSOLE.SESSION_SECRET_KEY is required. "
                "Configure it in settings.py or set SECRET_KEY"
            )
        if self.OTP_LENGTH < 4:
            raise ImproperlyConfigured("TENANT_CONSOLE.OTP_LENGTH must be at least 4")


# 全局配置实例
console_settings = ConsoleSettings()


# 便捷函数
def get_console_setting(name, default=None):
    """便捷函数：获取配置项"""
    try:
        return getattr(console_settings, name)
    except AttributeError:
        return default


def is_feature_enabled(feature_name):
    """便捷函数：检查功能是否开启"""
    return bool(get_console_setting(feature_name.upper(), False))
