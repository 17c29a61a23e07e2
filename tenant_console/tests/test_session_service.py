"""
测试会话网关
"""

from datetime import timedelta

import jwt
from django.test import TestCase
from django.utils import timezone

from ..models import Session
from ..services import SessionService
from ..conf import console_settings
from ..exceptions import (
    AccountPendingVerificationError,
    ForbiddenError,
    InvalidArgumentError,
    UnauthenticatedError,
)
from .mixins import ConsoleFixturesMixin


class SessionServiceTest(ConsoleFixturesMixin, TestCase):

    def setUp(self):
        self.session_service = SessionService()
        self.tenant = self.make_tenant()
        self.team = self.make_team(self.tenant)
        self.user = self.make_user("alice@acme.com", self.tenant, team=self.team)

    def test_create_and_resolve(self):
        result = self.session_service.create_session(self.user, ip_address="10.0.0.1", user_agent="pytest")

        self.assertIn('token', result)
        self.assertGreater(result['expires_at'], timezone.now())
        self.assertEqual(self.session_service.resolve(result['token']), self.user)

        session = Session.objects.get(id=result['session_id'])
        self.assertEqual(session.ip_address, "10.0.0.1")
        self.assertEqual(session.user_agent, "pytest")

    def test_token_claims(self):
        result = self.session_service.create_session(self.user)
        payload = jwt.decode(
            result['token'],
            console_settings.SESSION_SECRET_KEY,
            algorithms=[console_settings.SESSION_ALGORITHM],
        )
        self.assertEqual(payload['user_id'], str(self.user.id))
        self.assertEqual(payload['sid'], result['session_id'])
        self.assertEqual(payload['token_type'], 'session')

    def test_tokens_are_unique(self):
        first = self.session_service.create_session(self.user)['token']
        second = self.session_service.create_session(self.user)['token']
        self.assertNotEqual(first, second)

    def test_missing_token(self):
        for token in (None, ''):
            with self.assertRaises(UnauthenticatedError):
                self.session_service.resolve(token)

    def test_garbage_token(self):
        with self.assertRaises(UnauthenticatedError):
            self.session_service.resolve("not-a-token")

    def test_token_signed_with_other_key(self):
        token = jwt.encode({'user_id': str(self.user.id), 'sid': 'x', 'token_type': 'session'}, 'other-key' * 4, algorithm='HS256')
        with self.assertRaises(UnauthenticatedError):
            self.session_service.resolve(token)

    def test_wrong_token_type(self):
        result = self.session_service.create_session(self.user)
        payload = jwt.decode(result['token'], console_settings.SESSION_SECRET_KEY, algorithms=['HS256'])
        payload['token_type'] = 'refresh'
        token = jwt.encode(payload, console_settings.SESSION_SECRET_KEY, algorithm='HS256')

        with self.assertRaises(UnauthenticatedError):
            self.session_service.resolve(token)

    def test_expired_session_row(self):
        result = self.session_service.create_session(self.user)
        Session.objects.filter(id=result['session_id']).update(expires_at=timezone.now() - timedelta(seconds=1))

        with self.assertRaises(UnauthenticatedError):
            self.session_service.resolve(result['token'])

    def test_expired_signature(self):
        now = timezone.now()
        token = jwt.encode({
            'user_id': str(self.user.id),
            'sid': 'x',
            'token_type': 'session',
            'iat': int((now - timedelta(hours=2)).timestamp()),
            'exp': int((now - timedelta(hours=1)).timestamp()),
        }, console_settings.SESSION_SECRET_KEY, algorithm='HS256')

        with self.assertRaises(UnauthenticatedError) as ctx:
            self.session_service.resolve(token)
        self.assertIn("expired", ctx.exception.message)

    def test_logout_revokes_immediately(self):
        token = self.session_service.create_session(self.user)['token']

        self.assertTrue(self.session_service.logout(token))
        with self.assertRaises(UnauthenticatedError):
            self.session_service.resolve(token)

    def test_logout_is_idempotent(self):
        token = self.session_service.create_session(self.user)['token']

        self.assertTrue(self.session_service.logout(token))
        self.assertFalse(self.session_service.logout(token))
        self.assertFalse(self.session_service.logout("unknown-token"))
        self.assertFalse(self.session_service.logout(None))

    def test_logout_only_affects_one_session(self):
        first = self.session_service.create_session(self.user)['token']
        second = self.session_service.create_session(self.user)['token']

        self.session_service.logout(first)
        self.assertEqual(self.session_service.resolve(second), self.user)

    def test_revoke_user_sessions(self):
        tokens = [self.session_service.create_session(self.user)['token'] for _ in range(3)]

        self.assertEqual(self.session_service.revoke_user_sessions(self.user), 3)
        for token in tokens:
            with self.assertRaises(UnauthenticatedError):
                self.session_service.resolve(token)

    def test_deleted_user_session(self):
        token = self.session_service.create_session(self.user)['token']
        self.user.delete()
        with self.assertRaises(UnauthenticatedError):
            self.session_service.resolve(token)


class SessionGatePolicyTest(ConsoleFixturesMixin, TestCase):
    """未审核用户只能访问身份接口"""

    def setUp(self):
        self.session_service = SessionService()
        self.tenant = self.make_tenant()
        self.team = self.make_team(self.tenant)
        self.group = self.make_group(self.team)
        self.role = self.make_role(self.tenant, "Vault reader", vault=['read'])

    def test_unverified_user_resolves_but_is_pending(self):
        user = self.make_user("new@acme.com", self.tenant, verified=False)
        token = self.login(user)

        self.assertEqual(self.session_service.resolve(token), user)
        with self.assertRaises(AccountPendingVerificationError):
            self.session_service.require_verified(token)
        with self.assertRaises(AccountPendingVerificationError):
            self.session_service.authorize(token, 'vault', 'read')

    def test_pending_and_forbidden_are_distinguishable(self):
        user = self.make_user("member@acme.com", self.tenant, team=self.team)
        token = self.login(user)

        with self.assertRaises(ForbiddenError) as ctx:
            self.session_service.authorize(token, 'vault', 'read')
        self.assertNotIsInstance(ctx.exception, AccountPendingVerificationError)
        self.assertEqual(ctx.exception.error_code, 'forbidden')

    def test_authorize_defaults_to_own_team(self):
        user = self.make_user("member@acme.com", self.tenant, team=self.team)
        self.grant(user, self.group, self.role)
        token = self.login(user)

        self.assertEqual(self.session_service.authorize(token, 'vault', 'read'), user)

        other_team = self.make_team(self.tenant, "T2")
        with self.assertRaises(ForbiddenError):
            self.session_service.authorize(token, 'vault', 'read', scope_team_id=other_team.id)

    def test_authorize_unknown_module(self):
        user = self.make_user("member@acme.com", self.tenant, team=self.team)
        with self.assertRaises(InvalidArgumentError):
            self.session_service.authorize(self.login(user), 'payroll', 'read')

    def test_require_admin(self):
        admin = self.make_user("root@acme.com", self.tenant, is_admin=True)
        member = self.make_user("member@acme.com", self.tenant)
        pending_admin = self.make_user("pending@acme.com", self.tenant, verified=False, is_admin=True)

        self.assertEqual(self.session_service.require_admin(self.login(admin)), admin)
        with self.assertRaises(ForbiddenError):
            self.session_service.require_admin(self.login(member))
        with self.assertRaises(AccountPendingVerificationError):
            self.session_service.require_admin(self.login(pending_admin))
