"""
后台任务 - 验证码邮件投递
"""

import logging

from celery import shared_task
from django.core.mail import send_mail

from .conf import console_settings


logger = logging.getLogger(__name__)


@shared_task(name='tenant_console.deliver_otp_email')
def deliver_otp_email(email: str, code: str, lifetime_seconds: int) -> bool:
    """发送一次性验证码邮件"""
    minutes = max(1, lifetime_seconds // 60)
    message = (
        f"Your sign-in code is {code}\n\n"
        f"It expires in {minutes} minutes and can only be used once."
    )
    sent = send_mail(
        subject=console_settings.OTP_EMAIL_SUBJECT,
        message=message,
        from_email=console_settings.OTP_EMAIL_FROM,
        recipient_list=[email],
        fail_silently=False,
    )
    logger.info(f"OTP email delivered to {email}")
    return bool(sent)
