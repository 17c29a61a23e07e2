"""
Tenant Console
多租户管理后台访问控制库
"""

from setuptools import setup, find_packages
import os

# 读取 README 文件
def read_readme():
    readme_path = os.path.join(os.path.dirname(__file__), 'README.md')
    if os.path.exists(readme_path):
        with open(readme_path, 'r', encoding='utf-8') as f:
            return f.read()
    return "Tenant Console - 多租户管理后台访问控制库"

setup(
    name="tenant-console",
    version="1.0.0",
    author="Tenant Console Team",
    description="多租户管理后台访问控制 - OTP 登录、会话、团队/组/角色权限",
    long_description=read_readme(),
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tenant_console.tests", "tenant_console.tests.*", "docs*"]),
    include_package_data=True,
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Web Environment",
        "Framework :: Django",
        "Framework :: Django :: 4.2",
        "Framework :: Django :: 5.0",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Internet :: WWW/HTTP",
        "Topic :: System :: Systems Administration :: Authentication/Directory",
    ],
    keywords="django multi-tenant authentication authorization otp rbac admin-console",
    python_requires=">=3.10",
    install_requires=[
        "Django>=4.2",
        "djangorestframework>=3.14.0",
        "django-cors-headers>=4.0.0",
        "python-decouple>=3.8",
        "PyJWT>=2.8.0",
        "celery>=5.3.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-django>=4.5.0",
            "pytest-cov>=4.1.0",
            "black>=23.3.0",
            "flake8>=6.0.0",
            "isort>=5.12.0",
            "mypy>=1.4.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "tenant-console=tenant_console.cli:main",
        ],
        "django.apps": [
            "tenant_console=tenant_console.apps.TenantConsoleConfig",
        ],
    },
    zip_safe=False,
    platforms=["any"],
    license="MIT",
)
