"""
Tenant Console

多租户管理后台的访问控制核心。

核心设计原则：
- 邮箱一次性验证码登录，没有密码
- 会话 token 可以在服务端撤销
- 权限来自 用户 -> 组 -> 角色 -> 模块权限，每次检查重新计算
- 所有判断限定在用户自己的团队内
"""

__version__ = "1.0.0"
__author__ = "Tenant Console Team"
__description__ = "多租户管理后台访问控制库"
