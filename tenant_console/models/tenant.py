"""
租户模型
"""

from django.db import models

from .base import BaseModel


class Tenant(BaseModel):
    """租户 - 顶层隔离边界"""

    name = models.CharField(
        max_length=255,
        unique=True,
        help_text="租户名称"
    )

    class Meta:
        db_table = 'tenant_console_tenant'
        ordering = ['name']

    def __str__(self):
        return self.name
