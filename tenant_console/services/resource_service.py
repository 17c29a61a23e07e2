"""
业务模块记录服务 - vault / financials / reporting

记录只属于一个团队，所有操作先过权限解析器。
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Dict, List

from django.core.exceptions import ValidationError as DjangoValidationError

from ..models import Secret, Transaction, Report, User
from ..constants import (
    MODULE_VAULT,
    MODULE_FINANCIALS,
    MODULE_REPORTING,
    ACTION_CREATE,
    ACTION_READ,
    ACTION_UPDATE,
    ACTION_DELETE,
)
from ..exceptions import InvalidArgumentError, NotFoundError, ValidationError
from .permission_service import PermissionService


logger = logging.getLogger(__name__)


# 模块 -> (模型, 可写字段, 必填字段)
MODULE_RESOURCES: Dict[str, tuple] = {
    MODULE_VAULT: (Secret, ('name', 'value'), ('name', 'value')),
    MODULE_FINANCIALS: (Transaction, ('amount', 'description'), ('amount',)),
    MODULE_REPORTING: (Report, ('title', 'content'), ('title',)),
}


class ResourceService:
    """团队业务记录服务"""

    def __init__(self, module: str):
        if module not in MODULE_RESOURCES:
            raise InvalidArgumentError(f"Unknown module: {module}")
        self.module = module
        self.model, self.fields, self.required_fields = MODULE_RESOURCES[module]
        self.permission_service = PermissionService()

    def check(self, user: User, action: str, team_id=None):
        """
        检查用户在团队范围内的模块权限

        Returns:
            实际使用的团队ID (未指定时为用户自己的团队)

        Raises:
            ForbiddenError: 没有权限
        """
        team_id = self._scope(user, team_id)
        self.permission_service.ensure(user, self.module, action, team_id)
        return team_id

    def get(self, user: User, record_id, action: str = ACTION_READ):
        """获取本团队的记录并检查权限"""
        record = self._get_record(user, record_id)
        self.permission_service.ensure(user, self.module, action, record.team_id)
        return record

    def list(self, user: User, team_id=None) -> List:
        team_id = self.check(user, ACTION_READ, team_id)
        return list(self.model.objects.filter(team_id=team_id).order_by('-created_at'))

    def create(self, user: User, team_id=None, **data):
        team_id = self.check(user, ACTION_CREATE, team_id)

        values = self._clean(data, partial=False)
        record = self.model.objects.create(team_id=team_id, created_by=user, **values)
        logger.info(f"{self.module} record created: {record.id} by {user.id}")
        return record

    def update(self, user: User, record_id, **data):
        record = self.get(user, record_id, ACTION_UPDATE)

        values = self._clean(data, partial=True)
        for field, value in values.items():
            setattr(record, field, value)
        record.save()
        logger.info(f"{self.module} record updated: {record.id} by {user.id}")
        return record

    def delete(self, user: User, record_id) -> None:
        record = self.get(user, record_id, ACTION_DELETE)
        record.delete()
        logger.info(f"{self.module} record deleted: {record_id} by {user.id}")

    @staticmethod
    def _scope(user: User, team_id):
        # 未指定团队时使用用户自己的团队
        return team_id if team_id is not None else user.team_id

    def _get_record(self, user: User, record_id):
        # 其他团队的记录视为不存在
        try:
            return self.model.objects.get(id=record_id, team_id=user.team_id)
        except (self.model.DoesNotExist, DjangoValidationError, ValueError):
            raise NotFoundError(f"{self.module} record not found: {record_id}")

    def _clean(self, data: Dict, partial: bool) -> Dict:
        values = {field: data[field] for field in self.fields if field in data}

        if not partial:
            missing = [field for field in self.required_fields if values.get(field) in (None, '')]
            if missing:
                raise ValidationError(f"Missing required fields: {', '.join(missing)}")

        if 'amount' in values:
            values['amount'] = self._clean_amount(values['amount'])

        for field, value in values.items():
            if field != 'amount' and value is None:
                values[field] = ''
        return values

    def _clean_amount(self, value) -> Decimal:
        """金额必须是有限数，且符合模型字段的位数限制"""
        field = self.model._meta.get_field('amount')
        try:
            amount = Decimal(str(value))
        except (InvalidOperation, ValueError):
            raise ValidationError("Amount must be a number")

        if not amount.is_finite():
            raise ValidationError("Amount must be a finite number")

        if abs(amount) >= Decimal(10) ** (field.max_digits - field.decimal_places):
            raise ValidationError("Amount is out of range")

        step = Decimal(1).scaleb(-field.decimal_places)
        if amount.quantize(step) != amount:
            raise ValidationError(f"Amount allows at most {field.decimal_places} decimal places")
        return amount.quantize(step)
