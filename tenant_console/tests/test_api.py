"""
测试 REST API 接口
"""

from decimal import Decimal

from django.core import mail
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from ..conf import console_settings
from ..models import User, Team, Group, GroupRole, UserGroup, Secret, Transaction
from .mixins import ConsoleFixturesMixin


class AuthApiTest(ConsoleFixturesMixin, APITestCase):

    def setUp(self):
        self.tenant = self.make_tenant()
        self.team = self.make_team(self.tenant)

    def test_list_tenants_is_public(self):
        response = self.client.get(reverse('tenant_console:tenants'))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['tenants'][0]['name'], "Acme")

    def test_register(self):
        response = self.client.post(reverse('tenant_console:auth-register'), {
            'email': 'Alice@Acme.com',
            'tenantId': str(self.tenant.id),
        })
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['user']['email'], 'alice@acme.com')
        self.assertFalse(response.data['user']['verified'])

        response = self.client.post(reverse('tenant_console:auth-register'), {
            'email': 'alice@acme.com',
            'tenantId': str(self.tenant.id),
        })
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.json()['code'], 'email_already_exists')

    def test_routes_accept_optional_trailing_slash(self):
        self.make_user("alice@acme.com", self.tenant, team=self.team)
        url = reverse('tenant_console:auth-request-otp')
        self.assertFalse(url.endswith('/'))

        for path in (url, f'{url}/'):
            response = self.client.post(path, {'email': 'alice@acme.com'})
            self.assertEqual(response.status_code, status.HTTP_200_OK, path)

        response = self.client.get('/api/tenants/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_register_validation_error(self):
        response = self.client.post(reverse('tenant_console:auth-register'), {'email': 'nope'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'validation_error')
        self.assertIn('email', response.data['details'])
        self.assertIn('tenantId', response.data['details'])

    def test_otp_login_flow(self):
        user = self.make_user("alice@acme.com", self.tenant, team=self.team)

        with self.patch_code("123456"):
            with self.captureOnCommitCallbacks(execute=True):
                response = self.client.post(reverse('tenant_console:auth-request-otp'), {'email': 'alice@acme.com'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(mail.outbox), 1)

        response = self.client.post(reverse('tenant_console:auth-verify-otp'), {
            'email': 'alice@acme.com',
            'code': '123456',
        })
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['user']['id'], str(user.id))
        self.assertIn(console_settings.SESSION_COOKIE_NAME, response.cookies)
        token = response.data['token']

        # cookie 与 Bearer 头都可以使用
        response = self.client.get(reverse('tenant_console:auth-me'))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.client.cookies.clear()
        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')
        response = self.client.get(reverse('tenant_console:auth-me'))
        self.assertEqual(response.data['user']['email'], 'alice@acme.com')

        response = self.client.post(reverse('tenant_console:auth-logout'))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        response = self.client.get(reverse('tenant_console:auth-me'))
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_verify_otp_wrong_code(self):
        self.make_user("alice@acme.com", self.tenant, team=self.team)
        with self.patch_code("123456"):
            self.client.post(reverse('tenant_console:auth-request-otp'), {'email': 'alice@acme.com'})

        response = self.client.post(reverse('tenant_console:auth-verify-otp'), {
            'email': 'alice@acme.com',
            'code': '000000',
        })
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.json()['code'], 'code_mismatch')

    def test_verify_otp_unverified_user(self):
        self.make_user("new@acme.com", self.tenant, verified=False)
        with self.patch_code("123456"):
            self.client.post(reverse('tenant_console:auth-request-otp'), {'email': 'new@acme.com'})

        response = self.client.post(reverse('tenant_console:auth-verify-otp'), {
            'email': 'new@acme.com',
            'code': '123456',
        })
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.json()['code'], 'user_not_verified')

    def test_me_requires_session(self):
        response = self.client.get(reverse('tenant_console:auth-me'))
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_me_for_pending_user(self):
        pending = self.make_user("new@acme.com", self.tenant, verified=False)
        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {self.login(pending)}')

        self.assertEqual(self.client.get(reverse('tenant_console:auth-me')).status_code, status.HTTP_200_OK)
        response = self.client.get(reverse('tenant_console:vault'))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.json()['code'], 'account_pending_verification')

    def test_permissions(self):
        user = self.make_user("alice@acme.com", self.tenant, team=self.team)
        self.grant(user, self.make_group(self.team), self.make_role(self.tenant, "R", vault=['read', 'create']))
        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {self.login(user)}')

        response = self.client.get(reverse('tenant_console:auth-permissions'))
        self.assertEqual(response.data['permissions']['vault'], ['create', 'read'])

        other = self.make_team(self.tenant, "T2")
        response = self.client.get(reverse('tenant_console:auth-permissions'), {'teamId': str(other.id)})
        self.assertEqual(response.data['permissions']['vault'], [])


class AdminApiTest(ConsoleFixturesMixin, APITestCase):

    def setUp(self):
        self.tenant = self.make_tenant()
        self.admin = self.make_user("root@acme.com", self.tenant, is_admin=True)
        self.member = self.make_user("member@acme.com", self.tenant)
        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {self.login(self.admin)}')

    def test_non_admin_forbidden(self):
        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {self.login(self.member)}')
        for name in ('teams', 'roles', 'groups', 'users', 'admin-unverified-users'):
            response = self.client.get(reverse(f'tenant_console:{name}'))
            self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN, name)

    def test_verify_pending_user(self):
        pending = self.make_user("new@acme.com", self.tenant, verified=False)

        response = self.client.get(reverse('tenant_console:admin-unverified-users'))
        self.assertEqual([u['email'] for u in response.data['users']], ["new@acme.com"])

        response = self.client.post(reverse('tenant_console:admin-verify-user'), {'userId': str(pending.id)})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['user']['verified'])

    def test_update_user_with_put(self):
        team = self.make_team(self.tenant, "T1")
        pending = self.make_user("new@acme.com", self.tenant, verified=False)

        response = self.client.put(
            reverse('tenant_console:user-detail', args=[pending.id]),
            {'verified': True, 'teamId': str(team.id)},
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['user']['verified'])
        self.assertEqual(response.data['user']['teamId'], str(team.id))

        # 未传入的字段保持不变
        response = self.client.put(reverse('tenant_console:user-detail', args=[pending.id]), {'isAdmin': True})
        self.assertTrue(response.data['user']['isAdmin'])
        self.assertEqual(response.data['user']['teamId'], str(team.id))

    def test_create_tenant(self):
        response = self.client.post(reverse('tenant_console:tenants'), {'name': 'Globex'})
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {self.login(self.member)}')
        response = self.client.post(reverse('tenant_console:tenants'), {'name': 'Initech'})
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_registry_flow(self):
        response = self.client.post(reverse('tenant_console:teams'), {'name': 'T1'})
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        team_id = response.data['team']['id']

        response = self.client.post(reverse('tenant_console:roles'), {
            'name': 'Vault reader',
            'permissions': {'vault': ['read']},
        })
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        role_id = response.data['role']['id']
        self.assertEqual(response.data['role']['permissions']['financials'], [])

        response = self.client.post(reverse('tenant_console:groups'), {'name': 'G1', 'teamId': team_id})
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        group_id = response.data['group']['id']

        response = self.client.patch(
            reverse('tenant_console:user-detail', args=[self.member.id]),
            {'teamId': team_id},
        )
        self.assertEqual(response.data['user']['teamId'], team_id)

        response = self.client.post(reverse('tenant_console:group-roles', args=[group_id]), {'roleId': role_id})
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        response = self.client.post(reverse('tenant_console:group-users', args=[group_id]), {'userId': str(self.member.id)})
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        response = self.client.post(reverse('tenant_console:group-users', args=[group_id]), {'userId': str(self.member.id)})
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.json()['code'], 'already_member')

        response = self.client.get(reverse('tenant_console:groups'), {'teamId': team_id})
        group = response.data['groups'][0]
        self.assertEqual(group['userGroups'][0]['userId'], str(self.member.id))
        self.assertEqual(group['groupRoles'][0]['role']['name'], 'Vault reader')

        response = self.client.get(reverse('tenant_console:teams'))
        self.assertEqual(response.data['teams'][0]['_count'], {'users': 1, 'groups': 1})

        response = self.client.delete(reverse('tenant_console:group-user-detail', args=[group_id, self.member.id]))
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        response = self.client.delete(reverse('tenant_console:group-role-detail', args=[group_id, role_id]))
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(UserGroup.objects.exists())
        self.assertFalse(GroupRole.objects.exists())

    def test_team_mismatch(self):
        team = self.make_team(self.tenant, "T1")
        group = self.make_group(team)

        response = self.client.post(reverse('tenant_console:group-users', args=[group.id]), {'userId': str(self.member.id)})
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.json()['code'], 'team_mismatch')

    def test_invalid_role_permissions(self):
        response = self.client.post(reverse('tenant_console:roles'), {
            'name': 'Bad',
            'permissions': {'payroll': ['read']},
        })
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.post(reverse('tenant_console:roles'), {
            'name': 'Bad',
            'permissions': {'vault': ['approve']},
        })
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_update_role(self):
        role = self.make_role(self.tenant, "R", vault=['read'])
        response = self.client.put(
            reverse('tenant_console:role-detail', args=[role.id]),
            {'permissions': {'vault': ['read', 'update']}},
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['role']['permissions']['vault'], ['read', 'update'])
        self.assertEqual(response.data['role']['name'], 'R')

    def test_delete_team(self):
        team = self.make_team(self.tenant, "T1")
        self.make_group(team)
        self.member.team = team
        self.member.save()

        response = self.client.delete(reverse('tenant_console:team-detail', args=[team.id]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['deleted']['groups'], 1)
        self.assertEqual(response.data['deleted']['users'], 1)
        self.assertFalse(Team.objects.exists())
        self.assertFalse(Group.objects.exists())

    def test_other_tenant_is_invisible(self):
        globex = self.make_tenant("Globex")
        foreign_team = self.make_team(globex, "T1")
        foreign_user = self.make_user("zed@globex.com", globex)

        self.assertEqual(
            self.client.get(reverse('tenant_console:team-detail', args=[foreign_team.id])).status_code,
            status.HTTP_404_NOT_FOUND,
        )
        self.assertEqual(
            self.client.delete(reverse('tenant_console:user-detail', args=[foreign_user.id])).status_code,
            status.HTTP_404_NOT_FOUND,
        )
        self.assertTrue(User.objects.filter(id=foreign_user.id).exists())


class ModuleApiTest(ConsoleFixturesMixin, APITestCase):

    def setUp(self):
        self.tenant = self.make_tenant()
        self.team = self.make_team(self.tenant, "T1")
        self.other_team = self.make_team(self.tenant, "T2")
        self.group = self.make_group(self.team)
        self.role = self.make_role(self.tenant, "Vault editor", vault=['read', 'create', 'update'], financials=['read'])
        self.user = self.make_user("alice@acme.com", self.tenant, team=self.team)
        self.grant(self.user, self.group, self.role)
        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {self.login(self.user)}')

    def test_vault_crud(self):
        response = self.client.post(reverse('tenant_console:vault'), {'name': 'db', 'value': 'pw'})
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        secret_id = response.data['secret']['id']
        self.assertEqual(response.data['secret']['teamId'], str(self.team.id))

        response = self.client.get(reverse('tenant_console:vault'))
        self.assertEqual([s['name'] for s in response.data['secrets']], ['db'])

        response = self.client.put(reverse('tenant_console:vault-detail', args=[secret_id]), {'value': 'new'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['secret']['value'], 'new')

        response = self.client.delete(reverse('tenant_console:vault-detail', args=[secret_id]))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.json()['code'], 'forbidden')
        self.assertTrue(Secret.objects.filter(id=secret_id).exists())

    def test_other_team_scope(self):
        response = self.client.get(reverse('tenant_console:vault'), {'teamId': str(self.other_team.id)})
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        response = self.client.post(reverse('tenant_console:vault'), {
            'name': 'x', 'value': 'y', 'teamId': str(self.other_team.id),
        })
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_module_without_permission(self):
        self.assertEqual(self.client.get(reverse('tenant_console:financials')).status_code, status.HTTP_200_OK)
        self.assertEqual(self.client.get(reverse('tenant_console:reporting')).status_code, status.HTTP_403_FORBIDDEN)
        response = self.client.post(reverse('tenant_console:financials'), {'amount': '5.00'})
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_unauthenticated(self):
        self.client.credentials()
        response = self.client.get(reverse('tenant_console:vault'))
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_invalid_amount_is_rejected(self):
        self.grant(self.user, self.group, self.make_role(self.tenant, "Bookkeeper", financials=['create', 'update']))
        url = reverse('tenant_console:financials')

        for amount in ('NaN', 'Infinity', '1e20', 'lots', '1.234'):
            response = self.client.post(url, {'amount': amount})
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, amount)
            self.assertEqual(response.data['code'], 'validation_error')
            self.assertIn('amount', response.data['details'])
        self.assertFalse(Transaction.objects.exists())

        response = self.client.post(url, {'amount': '12.50', 'description': 'lunch'})
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['transaction']['amount'], '12.50')

        detail = reverse('tenant_console:financials-detail', args=[response.data['transaction']['id']])
        response = self.client.put(detail, {'amount': 'NaN'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(Transaction.objects.get().amount, Decimal('12.50'))

    def test_write_permission_checked_before_validation(self):
        response = self.client.post(reverse('tenant_console:financials'), {'amount': 'NaN'})
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_missing_required_field(self):
        response = self.client.post(reverse('tenant_console:vault'), {'name': 'db'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('value', response.data['details'])
        self.assertFalse(Secret.objects.exists())
