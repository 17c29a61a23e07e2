"""
用户模型
"""

from django.db import models

from .base import BaseModel


class ConsoleUserManager(models.Manager):
    """自定义用户管理器"""

    def create_user(self, email, tenant, **extra_fields):
        """创建普通用户 - 注册后默认未审核"""
        if not email:
            raise ValueError('Email is required')

        extra_fields.setdefault('verified', False)
        user = self.model(
            email=email.strip().lower(),
            tenant=tenant,
            **extra_fields
        )
        user.save(using=self._db)
        return user

    def create_admin(self, email, tenant, **extra_fields):
        """创建管理员 - 已审核且可管理注册表"""
        extra_fields.setdefault('verified', True)
        extra_fields.setdefault('is_admin', True)
        return self.create_user(email, tenant, **extra_fields)


class User(BaseModel):
    """用户模型 - 通过 OTP 登录，没有密码"""

    email = models.EmailField(
        max_length=255,
        db_index=True
    )
    tenant = models.ForeignKey(
        'Tenant',
        on_delete=models.CASCADE,
        related_name='users',
        help_text="所属租户"
    )
    team = models.ForeignKey(
        'Team',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='users',
        help_text="所属团队，最多一个"
    )
    verified = models.BooleanField(
        default=False,
        db_index=True,
        help_text="是否已通过管理员审核"
    )
    is_admin = models.BooleanField(
        default=False,
        help_text="是否可以管理租户的团队/角色/组/用户"
    )
    last_login_at = models.DateTimeField(
        null=True,
        blank=True
    )

    objects = ConsoleUserManager()

    class Meta:
        db_table = 'tenant_console_user'
        constraints = [
            models.UniqueConstraint(fields=['tenant', 'email'], name='unique_user_email_per_tenant'),
        ]
        indexes = [
            models.Index(fields=['tenant', 'verified'], name='tc_user_tenant_verified_idx'),
        ]
        ordering = ['email']

    def __str__(self):
        return self.email

    @property
    def is_anonymous(self):
        """是否匿名用户"""
        return False

    @property
    def is_authenticated(self):
        """已认证"""
        return True

    @property
    def has_team(self):
        return self.team_id is not None
