"""
Tenant Console 数据模型
"""

from .tenant import Tenant
from .user import User
from .team import Team, Role, Group, GroupRole, UserGroup
from .auth import OneTimeCode, Session
from .resources import Secret, Transaction, Report

__all__ = [
    'Tenant',
    'User',
    'Team',
    'Role',
    'Group',
    'GroupRole',
    'UserGroup',
    'OneTimeCode',
    'Session',
    'Secret',
    'Transaction',
    'Report',
]
