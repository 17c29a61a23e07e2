"""
Tenant Console REST API 路由

在项目 urls.py 中挂载:
    path('api/', include('tenant_console.api.urls'))

末尾斜杠可有可无，前端可以直接 POST 到 /api/auth/register
"""

import re

from django.urls import re_path

from . import views


app_name = 'tenant_console'


def route(pattern, view, name):
    """pattern 不带首尾斜杠，<name> 匹配一段路径"""
    regex = re.sub(r'<(\w+)>', r'(?P<\1>[^/]+)', pattern)
    return re_path(rf'^{regex}/?$', view, name=name)


urlpatterns = [
    # 认证
    route('auth/register', views.register, name='auth-register'),  # POST
    route('auth/request-otp', views.request_otp, name='auth-request-otp'),  # POST
    route('auth/verify-otp', views.verify_otp, name='auth-verify-otp'),  # POST
    route('auth/logout', views.logout, name='auth-logout'),  # POST
    route('auth/me', views.me, name='auth-me'),  # GET
    route('auth/permissions', views.permissions, name='auth-permissions'),  # GET ?teamId=

    # 管理员审核
    route('admin/unverified-users', views.unverified_users, name='admin-unverified-users'),  # GET
    route('admin/verify-user', views.verify_user, name='admin-verify-user'),  # POST

    # 注册表
    route('tenants', views.tenants, name='tenants'),  # GET/POST
    route('users', views.users, name='users'),  # GET
    route('users/<user_id>', views.user_detail, name='user-detail'),  # GET/PUT/PATCH/DELETE
    route('teams', views.teams, name='teams'),  # GET/POST
    route('teams/<team_id>', views.team_detail, name='team-detail'),  # GET/PUT/DELETE
    route('roles', views.roles, name='roles'),  # GET/POST
    route('roles/<role_id>', views.role_detail, name='role-detail'),  # GET/PUT/DELETE
    route('groups', views.groups, name='groups'),  # GET ?teamId= /POST
    route('groups/<group_id>', views.group_detail, name='group-detail'),  # GET/PUT/DELETE
    route('groups/<group_id>/users', views.group_users, name='group-users'),  # POST
    route('groups/<group_id>/users/<user_id>', views.group_user_detail, name='group-user-detail'),  # DELETE
    route('groups/<group_id>/roles', views.group_roles, name='group-roles'),  # POST
    route('groups/<group_id>/roles/<role_id>', views.group_role_detail, name='group-role-detail'),  # DELETE

    # 业务模块
    route('vault', views.vault, name='vault'),  # GET ?teamId= /POST
    route('vault/<record_id>', views.vault_detail, name='vault-detail'),  # PUT/DELETE
    route('financials', views.financials, name='financials'),
    route('financials/<record_id>', views.financials_detail, name='financials-detail'),
    route('reporting', views.reporting, name='reporting'),
    route('reporting/<record_id>', views.reporting_detail, name='reporting-detail'),
]
