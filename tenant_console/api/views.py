"""
Tenant Console REST API 视图

所有视图都是函数视图；认证由 tenant_console.decorators 完成，
DRF 自带的认证/权限类全部关闭。
"""

import logging

from rest_framework import status
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.response import Response

from ..conf import console_settings
from ..constants import (
    ErrorCode,
    MODULE_VAULT,
    MODULE_FINANCIALS,
    MODULE_REPORTING,
    ACTION_CREATE,
    ACTION_READ,
    ACTION_UPDATE,
)
from ..decorators import (
    console_endpoint,
    get_request_token,
    require_admin,
    require_module_permission,
    require_session,
)
from ..services import AuthService, RegistryService, ResourceService
from ..services.registry_service import UNSET
from . import serializers as s


logger = logging.getLogger(__name__)


def console_api(methods):
    """@api_view + 关闭 DRF 认证/权限，认证交给本库的装饰器"""
    def decorator(view_func):
        view_func = permission_classes([])(view_func)
        view_func = authentication_classes([])(view_func)
        return api_view(methods)(view_func)
    return decorator


def _invalid(serializer):
    return Response({
        'error': 'Validation error',
        'code': ErrorCode.VALIDATION_ERROR,
        'details': serializer.errors,
    }, status=status.HTTP_400_BAD_REQUEST)


def _client_ip(request):
    forwarded = request.META.get('HTTP_X_FORWARDED_FOR')
    if forwarded:
        return forwarded.split(',')[0].strip()
    return request.META.get('REMOTE_ADDR')


# ===== 认证 =====

@console_api(['POST'])
@console_endpoint
def register(request):
    """POST /auth/register - 注册未审核用户"""
    serializer = s.RegisterSerializer(data=request.data)
    if not serializer.is_valid():
        return _invalid(serializer)

    user = AuthService().register(
        serializer.validated_data['email'],
        serializer.validated_data['tenantId'],
    )
    return Response({
        'message': 'Registration successful. Your account is pending verification.',
        'user': s.UserSerializer(user).data,
    }, status=status.HTTP_201_CREATED)


@console_api(['POST'])
@console_endpoint
def request_otp(request):
    """POST /auth/request-otp - 发送登录验证码"""
    serializer = s.RequestOtpSerializer(data=request.data)
    if not serializer.is_valid():
        return _invalid(serializer)

    AuthService().request_otp(serializer.validated_data['email'])
    return Response({'message': 'Verification code sent'})


@console_api(['POST'])
@console_endpoint
def verify_otp(request):
    """POST /auth/verify-otp - 校验验证码，签发会话并写入 cookie"""
    serializer = s.VerifyOtpSerializer(data=request.data)
    if not serializer.is_valid():
        return _invalid(serializer)

    data = serializer.validated_data
    result = AuthService().verify_otp(
        data['email'],
        data['code'],
        tenant_id=data.get('tenantId'),
        ip_address=_client_ip(request),
        user_agent=request.META.get('HTTP_USER_AGENT', ''),
    )

    response = Response({
        'token': result['token'],
        'expiresAt': result['expires_at'],
        'user': s.UserSerializer(result['user']).data,
    })
    response.set_cookie(
        console_settings.SESSION_COOKIE_NAME,
        result['token'],
        max_age=console_settings.SESSION_LIFETIME,
        httponly=True,
        secure=request.is_secure(),
        samesite='Lax',
    )
    return response


@console_api(['POST'])
@console_endpoint
def logout(request):
    """POST /auth/logout - 幂等"""
    AuthService().logout(get_request_token(request))
    response = Response({'message': 'Logged out'})
    response.delete_cookie(console_settings.SESSION_COOKIE_NAME)
    return response


@console_api(['GET'])
@require_session(verified=False)
def me(request):
    """GET /auth/me - 未审核用户也可以访问"""
    return Response({'user': s.UserSerializer(request.console_user).data})


@console_api(['GET'])
@require_session(verified=False)
def permissions(request):
    """GET /auth/permissions?teamId= - 当前用户的模块权限"""
    team_id = request.query_params.get('teamId') or None
    return Response({
        'permissions': AuthService().list_permissions(request.console_token, team_id),
    })


# ===== 管理员: 用户审核 =====

@console_api(['GET'])
@require_admin
def unverified_users(request):
    users = RegistryService().list_unverified_users(request.console_user.tenant)
    return Response({'users': s.UserSerializer(users, many=True).data})


@console_api(['POST'])
@require_admin
def verify_user(request):
    serializer = s.UserIdSerializer(data=request.data)
    if not serializer.is_valid():
        return _invalid(serializer)

    user = RegistryService().verify_user(request.console_user.tenant, serializer.validated_data['userId'])
    logger.info(f"User {user.id} verified by admin {request.console_user.id}")
    return Response({'user': s.UserSerializer(user).data})


# ===== 租户 =====

@console_api(['GET', 'POST'])
@console_endpoint
def tenants(request):
    """GET 公开 (注册页选择租户)，POST 仅管理员"""
    if request.method == 'GET':
        return Response({'tenants': s.TenantSerializer(RegistryService().list_tenants(), many=True).data})
    return _create_tenant(request)


@require_admin
def _create_tenant(request):
    serializer = s.NameSerializer(data=request.data)
    if not serializer.is_valid():
        return _invalid(serializer)

    tenant = RegistryService().create_tenant(serializer.validated_data['name'])
    return Response({'tenant': s.TenantSerializer(tenant).data}, status=status.HTTP_201_CREATED)


# ===== 用户 =====

@console_api(['GET'])
@require_admin
def users(request):
    users = RegistryService().list_users(request.console_user.tenant)
    return Response({'users': s.UserSerializer(users, many=True).data})


@console_api(['GET', 'PUT', 'PATCH', 'DELETE'])
@require_admin
def user_detail(request, user_id):
    registry = RegistryService()
    tenant = request.console_user.tenant

    if request.method == 'GET':
        return Response({'user': s.UserSerializer(registry.get_user(tenant, user_id)).data})

    if request.method == 'DELETE':
        registry.delete_user(tenant, user_id)
        return Response(status=status.HTTP_204_NO_CONTENT)

    # PUT 与 PATCH 相同，只更新传入的字段
    serializer = s.UserUpdateSerializer(data=request.data)
    if not serializer.is_valid():
        return _invalid(serializer)

    data = serializer.validated_data
    user = registry.update_user(
        tenant,
        user_id,
        verified=data.get('verified', UNSET),
        team_id=data.get('teamId', UNSET),
        is_admin=data.get('isAdmin', UNSET),
    )
    return Response({'user': s.UserSerializer(user).data})


# ===== 团队 =====

@console_api(['GET', 'POST'])
@require_admin
def teams(request):
    registry = RegistryService()
    tenant = request.console_user.tenant

    if request.method == 'GET':
        return Response({'teams': s.TeamSerializer(registry.list_teams(tenant), many=True).data})

    serializer = s.NameSerializer(data=request.data)
    if not serializer.is_valid():
        return _invalid(serializer)

    team = registry.create_team(tenant, serializer.validated_data['name'])
    return Response({'team': s.TeamSerializer(team).data}, status=status.HTTP_201_CREATED)


@console_api(['GET', 'PUT', 'DELETE'])
@require_admin
def team_detail(request, team_id):
    registry = RegistryService()
    tenant = request.console_user.tenant

    if request.method == 'GET':
        return Response({'team': s.TeamSerializer(registry.get_team(tenant, team_id)).data})

    if request.method == 'DELETE':
        stats = registry.delete_team(tenant, team_id)
        return Response({'deleted': stats})

    serializer = s.NameSerializer(data=request.data)
    if not serializer.is_valid():
        return _invalid(serializer)

    team = registry.update_team(tenant, team_id, serializer.validated_data['name'])
    return Response({'team': s.TeamSerializer(team).data})


# ===== 角色 =====

@console_api(['GET', 'POST'])
@require_admin
def roles(request):
    registry = RegistryService()
    tenant = request.console_user.tenant

    if request.method == 'GET':
        return Response({'roles': s.RoleSerializer(registry.list_roles(tenant), many=True).data})

    serializer = s.RoleInputSerializer(data=request.data)
    if not serializer.is_valid():
        return _invalid(serializer)

    data = serializer.validated_data
    role = registry.create_role(tenant, data['name'], data['description'], data['permissions'])
    return Response({'role': s.RoleSerializer(role).data}, status=status.HTTP_201_CREATED)


@console_api(['GET', 'PUT', 'DELETE'])
@require_admin
def role_detail(request, role_id):
    registry = RegistryService()
    tenant = request.console_user.tenant

    if request.method == 'GET':
        return Response({'role': s.RoleSerializer(registry.get_role(tenant, role_id)).data})

    if request.method == 'DELETE':
        registry.delete_role(tenant, role_id)
        return Response(status=status.HTTP_204_NO_CONTENT)

    serializer = s.RoleInputSerializer(data=request.data, partial=True)
    if not serializer.is_valid():
        return _invalid(serializer)

    data = serializer.validated_data
    role = registry.update_role(
        tenant,
        role_id,
        name=data.get('name', UNSET),
        description=data.get('description', UNSET),
        permissions=data.get('permissions', UNSET),
    )
    return Response({'role': s.RoleSerializer(role).data})


# ===== 组 =====

@console_api(['GET', 'POST'])
@require_admin
def groups(request):
    registry = RegistryService()
    tenant = request.console_user.tenant

    if request.method == 'GET':
        team_id = request.query_params.get('teamId') or None
        return Response({'groups': s.GroupSerializer(registry.list_groups(tenant, team_id), many=True).data})

    serializer = s.GroupInputSerializer(data=request.data)
    if not serializer.is_valid():
        return _invalid(serializer)

    data = serializer.validated_data
    group = registry.create_group(tenant, data['name'], data['teamId'], data['description'])
    return Response({'group': s.GroupSerializer(group).data}, status=status.HTTP_201_CREATED)


@console_api(['GET', 'PUT', 'DELETE'])
@require_admin
def group_detail(request, group_id):
    registry = RegistryService()
    tenant = request.console_user.tenant

    if request.method == 'GET':
        return Response({'group': s.GroupSerializer(registry.get_group(tenant, group_id)).data})

    if request.method == 'DELETE':
        registry.delete_group(tenant, group_id)
        return Response(status=status.HTTP_204_NO_CONTENT)

    serializer = s.GroupUpdateSerializer(data=request.data)
    if not serializer.is_valid():
        return _invalid(serializer)

    data = serializer.validated_data
    group = registry.update_group(
        tenant,
        group_id,
        name=data.get('name', UNSET),
        description=data.get('description', UNSET),
    )
    return Response({'group': s.GroupSerializer(group).data})


@console_api(['POST'])
@require_admin
def group_users(request, group_id):
    serializer = s.UserIdSerializer(data=request.data)
    if not serializer.is_valid():
        return _invalid(serializer)

    membership = RegistryService().add_user_to_group(
        request.console_user.tenant, group_id, serializer.validated_data['userId']
    )
    return Response({'userGroup': s.UserGroupSerializer(membership).data}, status=status.HTTP_201_CREATED)


@console_api(['DELETE'])
@require_admin
def group_user_detail(request, group_id, user_id):
    RegistryService().remove_user_from_group(request.console_user.tenant, group_id, user_id)
    return Response(status=status.HTTP_204_NO_CONTENT)


@console_api(['POST'])
@require_admin
def group_roles(request, group_id):
    serializer = s.RoleIdSerializer(data=request.data)
    if not serializer.is_valid():
        return _invalid(serializer)

    group_role = RegistryService().add_role_to_group(
        request.console_user.tenant, group_id, serializer.validated_data['roleId']
    )
    return Response({'groupRole': s.GroupRoleSerializer(group_role).data}, status=status.HTTP_201_CREATED)


@console_api(['DELETE'])
@require_admin
def group_role_detail(request, group_id, role_id):
    RegistryService().remove_role_from_group(request.console_user.tenant, group_id, role_id)
    return Response(status=status.HTTP_204_NO_CONTENT)


# ===== 业务模块 =====

# 模块 -> (列表键, 单条键, 输出序列化器, 输入序列化器)
MODULE_VIEWS = {
    MODULE_VAULT: ('secrets', 'secret', s.SecretSerializer, s.SecretInputSerializer),
    MODULE_FINANCIALS: ('transactions', 'transaction', s.TransactionSerializer, s.TransactionInputSerializer),
    MODULE_REPORTING: ('reports', 'report', s.ReportSerializer, s.ReportInputSerializer),
}


def resource_views(module):
    """
    为业务模块生成列表/详情视图

    GET 在进入视图前完成 read 权限检查；写操作先检查权限，再校验输入。
    """
    list_key, item_key, serializer_class, input_class = MODULE_VIEWS[module]

    @require_module_permission(module, ACTION_READ, team_id='request.GET.teamId')
    def list_records(request):
        team_id = request.query_params.get('teamId') or None
        records = ResourceService(module).list(request.console_user, team_id)
        return Response({list_key: serializer_class(records, many=True).data})

    @require_session()
    def create_record(request):
        service = ResourceService(module)
        team_id = service.check(request.console_user, ACTION_CREATE, request.data.get('teamId') or None)

        serializer = input_class(data=request.data)
        if not serializer.is_valid():
            return _invalid(serializer)

        record = service.create(request.console_user, team_id, **serializer.validated_data)
        return Response({item_key: serializer_class(record).data}, status=status.HTTP_201_CREATED)

    @console_api(['GET', 'POST'])
    def collection(request):
        if request.method == 'GET':
            return list_records(request)
        return create_record(request)

    @console_api(['PUT', 'DELETE'])
    @require_session()
    def detail(request, record_id):
        service = ResourceService(module)
        if request.method == 'DELETE':
            service.delete(request.console_user, record_id)
            return Response(status=status.HTTP_204_NO_CONTENT)

        service.get(request.console_user, record_id, ACTION_UPDATE)
        serializer = input_class(data=request.data, partial=True)
        if not serializer.is_valid():
            return _invalid(serializer)

        record = service.update(request.console_user, record_id, **serializer.validated_data)
        return Response({item_key: serializer_class(record).data})

    return collection, detail


vault, vault_detail = resource_views(MODULE_VAULT)
financials, financials_detail = resource_views(MODULE_FINANCIALS)
reporting, reporting_detail = resource_views(MODULE_REPORTING)
