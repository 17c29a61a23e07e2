"""
测试URL配置 - 用于Tenant Console测试
"""

from django.urls import path, include


urlpatterns = [
    path('api/', include('tenant_console.api.urls')),
]
