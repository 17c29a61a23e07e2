"""
Tenant Console 装饰器 - 会话与权限检查
"""

import logging
from functools import wraps

from django.http import JsonResponse

from .conf import console_settings
from .exceptions import TenantConsoleError
from .services import SessionService


logger = logging.getLogger(__name__)


def error_response(exc: TenantConsoleError) -> JsonResponse:
    """把服务层异常转换为 JSON 响应"""
    return JsonResponse({
        'error': exc.message,
        'code': exc.error_code,
    }, status=exc.status_code)


def get_request_token(request):
    """从 Authorization: Bearer 头或会话 cookie 获取 token"""
    header = request.META.get('HTTP_AUTHORIZATION', '')
    if header.lower().startswith('bearer '):
        return header[7:].strip() or None
    return request.COOKIES.get(console_settings.SESSION_COOKIE_NAME)


def console_endpoint(view_func):
    """
    公开接口装饰器 - 只做异常转换

    使用示例:
        @api_view(['POST'])
        @console_endpoint
        def request_otp(request):
            ...
    """
    @wraps(view_func)
    def wrapper(request, *args, **kwargs):
        try:
            return view_func(request, *args, **kwargs)
        except TenantConsoleError as e:
            return error_response(e)

    return wrapper


def require_session(verified=True):
    """
    会话检查装饰器

    Args:
        verified: 是否要求用户已审核
            - True: 模块与管理接口
            - False: 身份检查接口 (例如 "who am I")

    通过后 request.console_user / request.console_token 可用
    """
    def decorator(view_func):
        @wraps(view_func)
        def wrapper(request, *args, **kwargs):
            try:
                token = get_request_token(request)
                session_service = SessionService()
                if verified:
                    user = session_service.require_verified(token)
                else:
                    user = session_service.resolve(token)

                request.console_user = user
                request.console_token = token
                return view_func(request, *args, **kwargs)

            except TenantConsoleError as e:
                return error_response(e)

        return wrapper
    return decorator


def require_admin(view_func):
    """租户管理员检查装饰器"""
    @wraps(view_func)
    def wrapper(request, *args, **kwargs):
        try:
            token = get_request_token(request)
            request.console_user = SessionService().require_admin(token)
            request.console_token = token
            return view_func(request, *args, **kwargs)

        except TenantConsoleError as e:
            return error_response(e)

    return wrapper


def require_module_permission(module, action, team_id=None):
    """
    模块权限检查装饰器

    Args:
        module: 模块 ('vault', 'financials', 'reporting')
        action: 操作类型 ('create', 'read', 'update', 'delete')
        team_id: 团队ID的获取方式
            - 不传: 使用当前用户的团队
            - 从request获取: "request.GET.teamId"
            - 从参数获取: "team_id" (函数参数)
            - 直接传值: "team-uuid"

    使用示例:
        @require_module_permission('vault', 'read', team_id="request.GET.teamId")
        def list_secrets(request):
            # 有权限才执行这里
    """
    def decorator(view_func):
        @wraps(view_func)
        def wrapper(request, *args, **kwargs):
            try:
                token = get_request_token(request)
                scope_team_id = _resolve_value(team_id, request, *args, **kwargs)
                request.console_user = SessionService().authorize(token, module, action, scope_team_id or None)
                request.console_token = token
                return view_func(request, *args, **kwargs)

            except TenantConsoleError as e:
                return error_response(e)

        return wrapper
    return decorator


def _resolve_value(value, request, *args, **kwargs):
    """
    解析参数值，支持多种来源

    Args:
        value: 要解析的值，可以是字符串或直接值
        request: Django request对象
        *args: 函数位置参数
        **kwargs: 函数关键字参数

    Returns:
        解析后的实际值
    """
    # 如果直接传值（不是字符串），直接返回
    if not isinstance(value, str):
        return value

    if value.startswith('request.'):
        # 从request对象获取，如 "request.GET.teamId"
        return _get_nested_attr(request, value[len('request.'):])

    elif value in kwargs:
        # 从函数参数直接获取
        return kwargs[value]

    # 静态值，直接返回
    return value


def _get_nested_attr(obj, attr_path):
    """
    获取嵌套属性值

    Args:
        obj: 对象
        attr_path: 属性路径，如 "GET.teamId" 或 "data.team_id"

    Returns:
        属性值
    """
    current = obj

    try:
        for attr in attr_path.split('.'):
            if hasattr(current, 'get') and not hasattr(current, attr):
                current = current.get(attr)
            elif hasattr(current, attr):
                current = getattr(current, attr)
            else:
                return None
            if current is None:
                return None
        return current
    except (AttributeError, KeyError, TypeError):
        return None
