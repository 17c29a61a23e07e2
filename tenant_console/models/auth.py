"""
OTP 验证码与会话模型
"""

from django.db import models
from django.utils import timezone

from .base import BaseModel


class OneTimeCodeQuerySet(models.QuerySet):

    def live(self):
        """未使用且未被新验证码作废"""
        return self.filter(consumed_at__isnull=True, invalidated_at__isnull=True)


class OneTimeCode(BaseModel):
    """一次性验证码，只保存摘要"""

    email = models.EmailField(
        max_length=255,
        db_index=True
    )
    code_hash = models.CharField(
        max_length=128
    )
    expires_at = models.DateTimeField()
    consumed_at = models.DateTimeField(
        null=True,
        blank=True
    )
    invalidated_at = models.DateTimeField(
        null=True,
        blank=True
    )

    objects = OneTimeCodeQuerySet.as_manager()

    class Meta:
        db_table = 'tenant_console_one_time_code'
        constraints = [
            # 每个邮箱最多一个未使用且未作废的验证码
            models.UniqueConstraint(
                fields=['email'],
                condition=models.Q(consumed_at__isnull=True, invalidated_at__isnull=True),
                name='unique_live_code_per_email',
            ),
        ]
        indexes = [
            models.Index(fields=['email', 'consumed_at', 'invalidated_at'], name='tc_otp_email_state_idx'),
            models.Index(fields=['expires_at'], name='tc_otp_expires_idx'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.email} ({'used' if self.consumed_at else 'live'})"

    @property
    def is_expired(self):
        return timezone.now() >= self.expires_at


class Session(BaseModel):
    """服务端会话记录，id 即 token 中的 sid，用于撤销"""

    user = models.ForeignKey(
        'User',
        on_delete=models.CASCADE,
        related_name='sessions'
    )
    expires_at = models.DateTimeField()
    revoked_at = models.DateTimeField(
        null=True,
        blank=True
    )
    ip_address = models.GenericIPAddressField(
        null=True,
        blank=True,
        help_text="IP地址"
    )
    user_agent = models.TextField(
        null=True,
        blank=True,
        help_text="User Agent"
    )

    class Meta:
        db_table = 'tenant_console_session'
        indexes = [
            models.Index(fields=['user', 'revoked_at'], name='tc_session_user_revoked_idx'),
        ]

    def __str__(self):
        return f"{self.user_id} - {self.id}"

    @property
    def is_revoked(self):
        return self.revoked_at is not None

    @property
    def is_expired(self):
        return timezone.now() >= self.expires_at

    @property
    def is_active(self):
        return not self.is_revoked and not self.is_expired
