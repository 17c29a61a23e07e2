"""
OTP 验证码服务 - 不用密码证明邮箱归属
"""

import logging
from datetime import timedelta

from django.db import IntegrityError, transaction
from django.db.models import Q
from django.utils import timezone
from django.utils.crypto import constant_time_compare, get_random_string, salted_hmac

from ..models import OneTimeCode
from ..conf import console_settings
from ..constants import OTP_HASH_SALT
from ..exceptions import CodeMismatchError, ExpiredCodeError, InvalidCodeError, ValidationError


logger = logging.getLogger(__name__)


class OtpService:
    """OTP 验证码服务"""

    # 唯一约束冲突时的最多写入次数
    ISSUE_ATTEMPTS = 2

    def __init__(self):
        self.code_length = console_settings.OTP_LENGTH
        self.code_lifetime = console_settings.OTP_LIFETIME

    def request_code(self, email: str) -> OneTimeCode:
        """
        生成并投递验证码，同一邮箱之前未使用的验证码全部作废

        Args:
            email: 邮箱

        Returns:
            OneTimeCode: 新的验证码记录 (只含摘要)
        """
        email = self.normalize_email(email)
        code = get_random_string(self.code_length, allowed_chars='0123456789')

        for attempt in range(self.ISSUE_ATTEMPTS):
            now = timezone.now()
            try:
                with transaction.atomic():
                    superseded = self._supersede(email, now)
                    otp = OneTimeCode.objects.create(
                        email=email,
                        code_hash=self._hash_code(email, code),
                        expires_at=now + timedelta(seconds=self.code_lifetime),
                    )
                    # 事务提交后再投递，避免邮件里的验证码在库中不存在
                    transaction.on_commit(lambda: self._deliver(email, code))
                break
            except IntegrityError:
                # 并发请求抢先写入了验证码，作废它后重试
                if attempt + 1 >= self.ISSUE_ATTEMPTS:
                    raise
                logger.info(f"OTP issue raced with a concurrent request: email={email}")

        logger.info(f"OTP issued: email={email}, superseded={superseded}")
        return otp

    def verify_code(self, email: str, code: str) -> str:
        """
        校验并消费验证码

        Args:
            email: 邮箱
            code: 验证码

        Returns:
            str: 通过验证的邮箱 (身份证明)

        Raises:
            InvalidCodeError: 没有可用验证码，或已被并发请求消费
            ExpiredCodeError: 验证码过期
            CodeMismatchError: 验证码不匹配
        """
        email = self.normalize_email(email)
        otp = OneTimeCode.objects.live().filter(email=email).order_by('-created_at').first()

        if otp is None:
            raise InvalidCodeError("No valid code for this email")

        if otp.is_expired:
            raise ExpiredCodeError("Code has expired")

        if not constant_time_compare(otp.code_hash, self._hash_code(email, str(code or '').strip())):
            logger.warning(f"OTP mismatch: email={email}")
            raise CodeMismatchError("Code does not match")

        if not self._claim(otp):
            raise InvalidCodeError("Code has already been used")

        logger.info(f"OTP verified: email={email}")
        return email

    def purge_expired(self) -> int:
        """
        清理过期或已使用的验证码

        Returns:
            int: 清理数量
        """
        now = timezone.now()
        count, _ = OneTimeCode.objects.filter(
            Q(expires_at__lt=now) | Q(consumed_at__isnull=False) | Q(invalidated_at__isnull=False)
        ).delete()
        logger.info(f"Cleaned up {count} one-time codes")
        return count

    def _supersede(self, email: str, now) -> int:
        """作废该邮箱所有未使用的验证码，并锁住这些行"""
        live = OneTimeCode.objects.live().filter(email=email)
        list(live.select_for_update().values_list('pk', flat=True))
        return live.update(invalidated_at=now)

    def _claim(self, otp: OneTimeCode) -> bool:
        """条件更新消费验证码，先提交者胜出"""
        updated = OneTimeCode.objects.live().filter(pk=otp.pk).update(consumed_at=timezone.now())
        return updated == 1

    def _deliver(self, email: str, code: str):
        from ..tasks import deliver_otp_email

        if console_settings.OTP_ASYNC_DELIVERY:
            deliver_otp_email.delay(email, code, self.code_lifetime)
        else:
            deliver_otp_email(email, code, self.code_lifetime)

    @staticmethod
    def _hash_code(email: str, code: str) -> str:
        return salted_hmac(OTP_HASH_SALT, f"{email}:{code}", algorithm='sha256').hexdigest()

    @staticmethod
    def normalize_email(email: str) -> str:
        if not email or '@' not in email:
            raise ValidationError("A valid email is required")
        return email.strip().lower()
