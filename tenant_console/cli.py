"""
Tenant Console CLI 工具
提供命令行接口用于快速初始化和管理

需要 DJANGO_SETTINGS_MODULE 指向项目配置
"""

import os
import sys
import argparse

import django
from django.core.management import call_command
from django.core.management.base import CommandError


def build_parser():
    parser = argparse.ArgumentParser(
        description='Tenant Console 管理工具',
        prog='tenant-console'
    )
    parser.add_argument(
        '--settings',
        help='Django settings 模块，默认读取 DJANGO_SETTINGS_MODULE'
    )
    subparsers = parser.add_subparsers(dest='command', help='可用命令')

    # 初始化命令
    init_parser = subparsers.add_parser('init', help='建表并可选创建初始租户/管理员')
    init_parser.add_argument('--tenant', help='租户名称')
    init_parser.add_argument('--admin-email', help='管理员邮箱')

    # 创建管理员命令
    admin_parser = subparsers.add_parser('create-admin', help='创建租户管理员')
    admin_parser.add_argument('--tenant', required=True, help='租户名称')
    admin_parser.add_argument('--email', required=True, help='邮箱')

    # 检查配置命令
    subparsers.add_parser('check-config', help='检查配置')

    # 检查权限命令
    check_permission_parser = subparsers.add_parser('check-permission', help='检查用户权限')
    check_permission_parser.add_argument('--user-id', required=True, help='用户ID')
    check_permission_parser.add_argument('--module', required=True, help='模块')
    check_permission_parser.add_argument('--action', help='操作类型，不传时列出全部权限')
    check_permission_parser.add_argument('--team-id', help='团队ID')

    return parser


def main(argv=None):
    """CLI 主入口"""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return

    if args.settings:
        os.environ['DJANGO_SETTINGS_MODULE'] = args.settings
    if not os.environ.get('DJANGO_SETTINGS_MODULE'):
        print("错误: 未设置 DJANGO_SETTINGS_MODULE，请使用 --settings 指定")
        sys.exit(1)

    django.setup()

    # 执行对应命令
    try:
        if args.command == 'init':
            call_command('init_console', tenant=args.tenant, admin_email=args.admin_email)
        elif args.command == 'create-admin':
            call_command('create_console_admin', tenant=args.tenant, email=args.email)
        elif args.command == 'check-config':
            call_command('check_console_config')
        elif args.command == 'check-permission':
            options = {'user_id': args.user_id, 'module': args.module}
            if args.action:
                options['action'] = args.action
            if args.team_id:
                options['team_id'] = args.team_id
            call_command('check_permission', **options)
    except CommandError as e:
        print(f"错误: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
