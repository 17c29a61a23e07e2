import uuid

from django.db import migrations, models
import django.db.models.deletion

import tenant_console.constants


def base_fields():
    return [
        ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
        ('created_at', models.DateTimeField(auto_now_add=True)),
        ('updated_at', models.DateTimeField(auto_now=True)),
    ]


def team_scoped_fields():
    return [
        ('team', models.ForeignKey(
            help_text='所属团队',
            on_delete=django.db.models.deletion.CASCADE,
            related_name='%(class)ss',
            to='tenant_console.team',
        )),
        ('created_by', models.ForeignKey(
            blank=True,
            help_text='创建人',
            null=True,
            on_delete=django.db.models.deletion.SET_NULL,
            related_name='created_%(class)ss',
            to='tenant_console.user',
        )),
    ]


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Tenant',
            fields=base_fields() + [
                ('name', models.CharField(help_text='租户名称', max_length=255, unique=True)),
            ],
            options={
                'db_table': 'tenant_console_tenant',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='Team',
            fields=base_fields() + [
                ('name', models.CharField(help_text='团队名称', max_length=255)),
                ('tenant', models.ForeignKey(
                    help_text='所属租户',
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='teams',
                    to='tenant_console.tenant',
                )),
            ],
            options={
                'db_table': 'tenant_console_team',
                'ordering': ['name'],
                'constraints': [
                    models.UniqueConstraint(fields=('tenant', 'name'), name='unique_team_name_per_tenant'),
                ],
            },
        ),
        migrations.CreateModel(
            name='User',
            fields=base_fields() + [
                ('email', models.EmailField(db_index=True, max_length=255)),
                ('verified', models.BooleanField(db_index=True, default=False, help_text='是否已通过管理员审核')),
                ('is_admin', models.BooleanField(default=False, help_text='是否可以管理租户的团队/角色/组/用户')),
                ('last_login_at', models.DateTimeField(blank=True, null=True)),
                ('tenant', models.ForeignKey(
                    help_text='所属租户',
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='users',
                    to='tenant_console.tenant',
                )),
                ('team', models.ForeignKey(
                    blank=True,
                    help_text='所属团队，最多一个',
                    null=True,
                    on_delete=django.db.models.deletion.SET_NULL,
                    related_name='users',
                    to='tenant_console.team',
                )),
            ],
            options={
                'db_table': 'tenant_console_user',
                'ordering': ['email'],
                'indexes': [
                    models.Index(fields=['tenant', 'verified'], name='tc_user_tenant_verified_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(fields=('tenant', 'email'), name='unique_user_email_per_tenant'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Role',
            fields=base_fields() + [
                ('name', models.CharField(help_text='角色名称', max_length=255)),
                ('description', models.TextField(blank=True, default='', help_text='角色描述')),
                ('permissions', models.JSONField(
                    default=tenant_console.constants.empty_permission_map,
                    help_text="模块权限 {vault: ['read'], financials: [], reporting: []}",
                )),
                ('tenant', models.ForeignKey(
                    help_text='所属租户',
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='roles',
                    to='tenant_console.tenant',
                )),
            ],
            options={
                'db_table': 'tenant_console_role',
                'ordering': ['name'],
                'constraints': [
                    models.UniqueConstraint(fields=('tenant', 'name'), name='unique_role_name_per_tenant'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Group',
            fields=base_fields() + [
                ('name', models.CharField(help_text='组名称', max_length=255)),
                ('description', models.TextField(blank=True, default='', help_text='组描述')),
                ('team', models.ForeignKey(
                    help_text='所属团队',
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='groups',
                    to='tenant_console.team',
                )),
            ],
            options={
                'db_table': 'tenant_console_group',
                'ordering': ['name'],
                'constraints': [
                    models.UniqueConstraint(fields=('team', 'name'), name='unique_group_name_per_team'),
                ],
            },
        ),
        migrations.CreateModel(
            name='GroupRole',
            fields=base_fields() + [
                ('group', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='group_roles',
                    to='tenant_console.group',
                )),
                ('role', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='group_roles',
                    to='tenant_console.role',
                )),
            ],
            options={
                'db_table': 'tenant_console_group_role',
                'constraints': [
                    models.UniqueConstraint(fields=('group', 'role'), name='unique_group_role'),
                ],
            },
        ),
        migrations.CreateModel(
            name='UserGroup',
            fields=base_fields() + [
                ('user', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='user_groups',
                    to='tenant_console.user',
                )),
                ('group', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='user_groups',
                    to='tenant_console.group',
                )),
            ],
            options={
                'db_table': 'tenant_console_user_group',
                'constraints': [
                    models.UniqueConstraint(fields=('user', 'group'), name='unique_user_group'),
                ],
            },
        ),
        migrations.CreateModel(
            name='OneTimeCode',
            fields=base_fields() + [
                ('email', models.EmailField(db_index=True, max_length=255)),
                ('code_hash', models.CharField(max_length=128)),
                ('expires_at', models.DateTimeField()),
                ('consumed_at', models.DateTimeField(blank=True, null=True)),
                ('invalidated_at', models.DateTimeField(blank=True, null=True)),
            ],
            options={
                'db_table': 'tenant_console_one_time_code',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['email', 'consumed_at', 'invalidated_at'], name='tc_otp_email_state_idx'),
                    models.Index(fields=['expires_at'], name='tc_otp_expires_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(
                        condition=models.Q(('consumed_at__isnull', True), ('invalidated_at__isnull', True)),
                        fields=('email',),
                        name='unique_live_code_per_email',
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name='Session',
            fields=base_fields() + [
                ('expires_at', models.DateTimeField()),
                ('revoked_at', models.DateTimeField(blank=True, null=True)),
                ('ip_address', models.GenericIPAddressField(blank=True, help_text='IP地址', null=True)),
                ('user_agent', models.TextField(blank=True, help_text='User Agent', null=True)),
                ('user', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='sessions',
                    to='tenant_console.user',
                )),
            ],
            options={
                'db_table': 'tenant_console_session',
                'indexes': [
                    models.Index(fields=['user', 'revoked_at'], name='tc_session_user_revoked_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Secret',
            fields=base_fields() + [
                ('name', models.CharField(max_length=255)),
                ('value', models.TextField()),
            ] + team_scoped_fields(),
            options={
                'db_table': 'tenant_console_secret',
                'ordering': ['-created_at'],
                'abstract': False,
            },
        ),
        migrations.CreateModel(
            name='Transaction',
            fields=base_fields() + [
                ('amount', models.DecimalField(decimal_places=2, max_digits=14)),
                ('description', models.CharField(blank=True, default='', max_length=500)),
            ] + team_scoped_fields(),
            options={
                'db_table': 'tenant_console_transaction',
                'ordering': ['-created_at'],
                'abstract': False,
            },
        ),
        migrations.CreateModel(
            name='Report',
            fields=base_fields() + [
                ('title', models.CharField(max_length=255)),
                ('content', models.TextField(blank=True, default='')),
            ] + team_scoped_fields(),
            options={
                'db_table': 'tenant_console_report',
                'ordering': ['-created_at'],
                'abstract': False,
            },
        ),
    ]
