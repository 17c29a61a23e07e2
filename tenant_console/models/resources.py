"""
业务模块记录 - 团队范围，由权限解析器控制访问
"""

from django.db import models

from .base import TeamScopedModel


class Secret(TeamScopedModel):
    """vault 模块"""

    name = models.CharField(max_length=255)
    value = models.TextField()

    class Meta(TeamScopedModel.Meta):
        db_table = 'tenant_console_secret'

    def __str__(self):
        return self.name


class Transaction(TeamScopedModel):
    """financials 模块"""

    amount = models.DecimalField(max_digits=14, decimal_places=2)
    description = models.CharField(max_length=500, blank=True, default='')

    class Meta(TeamScopedModel.Meta):
        db_table = 'tenant_console_transaction'

    def __str__(self):
        return f"{self.amount} {self.description}"


class Report(TeamScopedModel):
    """reporting 模块"""

    title = models.CharField(max_length=255)
    content = models.TextField(blank=True, default='')

    class Meta(TeamScopedModel.Meta):
        db_table = 'tenant_console_report'

    def __str__(self):
        return self.title
