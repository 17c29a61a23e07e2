import logging

from django.apps import AppConfig
from django.core.exceptions import ImproperlyConfigured


logger = logging.getLogger(__name__)


class TenantConsoleConfig(AppConfig):
    """Tenant Console 应用配置"""

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'tenant_console'
    verbose_name = 'Tenant Console'

    def ready(self):
        """应用初始化时检查配置，只记录不中断启动"""
        from .conf import console_settings

        try:
            console_settings.validate()
        except ImproperlyConfigured as e:
            logger.warning(f"Tenant Console configuration issue: {e}")
            logger.warning("Run 'python manage.py check_console_config' for details")
            return

        logger.debug("Tenant Console configuration validated")
