"""
基础模型类
"""

import uuid
from django.db import models


class BaseModel(models.Model):
    """基础模型类"""

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False
    )
    created_at = models.DateTimeField(
        auto_now_add=True
    )
    updated_at = models.DateTimeField(
        auto_now=True
    )

    class Meta:
        abstract = True
        ordering = ['-created_at']


class TeamScopedModel(BaseModel):
    """团队范围内的业务记录基类 (vault / financials / reporting)"""

    team = models.ForeignKey(
        'Team',
        on_delete=models.CASCADE,
        related_name='%(class)ss',
        help_text="所属团队"
    )
    created_by = models.ForeignKey(
        'User',
        on_delete=models.SET_NULL,
        related_name='created_%(class)ss',
        null=True,
        blank=True,
        help_text="创建人"
    )

    class Meta:
        abstract = True
        ordering = ['-created_at']
