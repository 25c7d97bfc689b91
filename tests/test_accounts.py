"""Tests for warden.services.accounts: the six operations and their failure kinds."""

import unittest
from unittest.mock import patch

from pydantic import SecretStr
from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from warden.core.config import Settings
from warden.core.database import make_engine
from warden.core.errors import (
    DuplicateEmailError,
    InvalidCredentialsError,
    InvalidTokenError,
    LastAdminProtectedError,
    NotFoundError,
    RoleSeedMissingError,
    UnauthorizedError,
    ValidationFailedError,
)
from warden.core.security import hash_password, verify_password
from warden.models import Base, User
from warden.scripts.create_user import create_user
from warden.scripts.seed_roles import seed_roles
from warden.services import accounts
from warden.services.policy import Principal
from warden.services.store import UserStore

PASSWORD = "Secret123"


def _settings() -> Settings:
    return Settings(
        _env_file=None,
        DATABASE_URL="sqlite://",
        JWT_SECRET=SecretStr("accounts-test-secret"),
        BCRYPT_ROUNDS=4,
    )


def _make_session(seed: bool = True) -> Session:
    engine = make_engine("sqlite://")
    Base.metadata.create_all(engine)
    session = sessionmaker(bind=engine, autoflush=False)()
    if seed:
        seed_roles(session)
    return session


def _principal(session: Session, user_id: int) -> Principal:
    user = UserStore(session).find_by_id(user_id)
    return Principal(id=user.id, email=user.email, role=user.role)


class AccountsTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.settings = _settings()
        self.session = _make_session()

    def tearDown(self) -> None:
        self.session.close()

    def _admin(self, name: str, email: str) -> Principal:
        user = create_user(self.session, name, email, PASSWORD, role="Admin", rounds=4)
        return _principal(self.session, user.id)


class TestRegister(AccountsTestCase):
    def test_register_assigns_user_role_and_token(self) -> None:
        result = accounts.register(self.session, self.settings, "Alice", "alice@example.com", PASSWORD)
        self.assertEqual(result.user.role, "User")
        self.assertTrue(result.token.access_token)
        principal = accounts.authenticate(self.session, self.settings, result.token.access_token)
        self.assertEqual(principal.id, result.user.id)

    def test_password_is_stored_hashed(self) -> None:
        result = accounts.register(self.session, self.settings, "Alice", "alice@example.com", PASSWORD)
        stored = self.session.execute(
            select(User.password_hash).where(User.id == result.user.id)
        ).scalar_one()
        self.assertNotEqual(stored, PASSWORD)

    def test_duplicate_email(self) -> None:
        accounts.register(self.session, self.settings, "Alice", "alice@example.com", PASSWORD)
        with self.assertRaises(DuplicateEmailError):
            accounts.register(self.session, self.settings, "Alice 2", "Alice@Example.com", PASSWORD)

    def test_weak_password_rejected_before_store(self) -> None:
        with self.assertRaises(ValidationFailedError):
            accounts.register(self.session, self.settings, "Alice", "alice@example.com", "weakpass")
        self.assertEqual(UserStore(self.session).list_all(), [])

    def test_blank_name_rejected(self) -> None:
        with self.assertRaises(ValidationFailedError):
            accounts.register(self.session, self.settings, "   ", "alice@example.com", PASSWORD)

    def test_unseeded_roles_fail_cleanly(self) -> None:
        session = _make_session(seed=False)
        try:
            with self.assertRaises(RoleSeedMissingError):
                accounts.register(session, self.settings, "Alice", "alice@example.com", PASSWORD)
        finally:
            session.close()


class TestLogin(AccountsTestCase):
    def setUp(self) -> None:
        super().setUp()
        accounts.register(self.session, self.settings, "Alice", "alice@example.com", PASSWORD)

    def test_login_success_any_email_case(self) -> None:
        result = accounts.login(self.session, self.settings, "ALICE@example.com", PASSWORD)
        self.assertEqual(result.user.email, "alice@example.com")

    def test_wrong_password_and_unknown_email_look_the_same(self) -> None:
        with self.assertRaises(InvalidCredentialsError) as wrong_password:
            accounts.login(self.session, self.settings, "alice@example.com", "Secret124")
        with self.assertRaises(InvalidCredentialsError) as unknown_email:
            accounts.login(self.session, self.settings, "nobody@example.com", PASSWORD)
        self.assertEqual(wrong_password.exception.message, unknown_email.exception.message)


class TestLogout(AccountsTestCase):
    def test_logout_revokes_token(self) -> None:
        result = accounts.register(self.session, self.settings, "Alice", "alice@example.com", PASSWORD)
        token = result.token.access_token
        accounts.logout(self.session, self.settings, token)
        with self.assertRaises(InvalidTokenError):
            accounts.authenticate(self.session, self.settings, token)
        with self.assertRaises(InvalidTokenError):
            accounts.logout(self.session, self.settings, token)

    def test_token_of_deleted_user_is_invalid(self) -> None:
        self._admin("Root", "root@example.com")
        result = accounts.register(self.session, self.settings, "Alice", "alice@example.com", PASSWORD)
        actor = _principal(self.session, result.user.id)
        accounts.delete_user(self.session, actor, actor.id)
        with self.assertRaises(InvalidTokenError):
            accounts.authenticate(self.session, self.settings, result.token.access_token)


class TestListUsers(AccountsTestCase):
    def test_admin_lists_everyone_with_roles(self) -> None:
        admin = self._admin("Root", "root@example.com")
        accounts.register(self.session, self.settings, "Alice", "alice@example.com", PASSWORD)
        users = accounts.list_users(self.session, admin)
        self.assertEqual([(u.email, u.role) for u in users], [
            ("root@example.com", "Admin"),
            ("alice@example.com", "User"),
        ])

    def test_user_cannot_list(self) -> None:
        result = accounts.register(self.session, self.settings, "Alice", "alice@example.com", PASSWORD)
        with self.assertRaises(UnauthorizedError):
            accounts.list_users(self.session, _principal(self.session, result.user.id))


class TestUpdateUser(AccountsTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.alice = accounts.register(
            self.session, self.settings, "Alice", "alice@example.com", PASSWORD
        ).user
        self.bob = accounts.register(
            self.session, self.settings, "Bob", "bob@example.com", PASSWORD
        ).user
        self.alice_p = _principal(self.session, self.alice.id)

    def test_self_update(self) -> None:
        updated = accounts.update_user(
            self.session, self.settings, self.alice_p, self.alice.id, name="Alicia"
        )
        self.assertEqual(updated.name, "Alicia")

    def test_user_cannot_update_other(self) -> None:
        with self.assertRaises(UnauthorizedError):
            accounts.update_user(self.session, self.settings, self.alice_p, self.bob.id, name="X")
        self.assertEqual(UserStore(self.session).find_by_id(self.bob.id).name, "Bob")

    def test_admin_updates_anyone(self) -> None:
        admin = self._admin("Root", "root@example.com")
        updated = accounts.update_user(
            self.session, self.settings, admin, self.bob.id, email="robert@example.com"
        )
        self.assertEqual(updated.email, "robert@example.com")

    def test_missing_target(self) -> None:
        with self.assertRaises(NotFoundError):
            accounts.update_user(self.session, self.settings, self.alice_p, 999, name="X")

    def test_duplicate_email(self) -> None:
        with self.assertRaises(DuplicateEmailError):
            accounts.update_user(
                self.session, self.settings, self.alice_p, self.alice.id, email="bob@example.com"
            )

    def test_password_change_rehashes(self) -> None:
        accounts.update_user(
            self.session, self.settings, self.alice_p, self.alice.id, password="NewSecret9"
        )
        accounts.login(self.session, self.settings, "alice@example.com", "NewSecret9")
        with self.assertRaises(InvalidCredentialsError):
            accounts.login(self.session, self.settings, "alice@example.com", PASSWORD)

    def test_weak_password_rejected(self) -> None:
        with self.assertRaises(ValidationFailedError):
            accounts.update_user(
                self.session, self.settings, self.alice_p, self.alice.id, password="short"
            )

    def test_empty_update_returns_user(self) -> None:
        user = accounts.update_user(self.session, self.settings, self.alice_p, self.alice.id)
        self.assertEqual(user.name, "Alice")


class TestDeleteUser(AccountsTestCase):
    def test_user_deletes_self(self) -> None:
        alice = accounts.register(self.session, self.settings, "Alice", "a@example.com", PASSWORD).user
        accounts.delete_user(self.session, _principal(self.session, alice.id), alice.id)
        with self.assertRaises(NotFoundError):
            UserStore(self.session).find_by_id(alice.id)

    def test_user_cannot_delete_other(self) -> None:
        alice = accounts.register(self.session, self.settings, "Alice", "a@example.com", PASSWORD).user
        bob = accounts.register(self.session, self.settings, "Bob", "b@example.com", PASSWORD).user
        with self.assertRaises(UnauthorizedError):
            accounts.delete_user(self.session, _principal(self.session, alice.id), bob.id)
        UserStore(self.session).find_by_id(bob.id)

    def test_missing_target(self) -> None:
        admin = self._admin("Root", "root@example.com")
        with self.assertRaises(NotFoundError):
            accounts.delete_user(self.session, admin, 999)

    def test_sole_admin_cannot_be_deleted(self) -> None:
        admin = self._admin("Root", "root@example.com")
        with self.assertRaises(LastAdminProtectedError):
            accounts.delete_user(self.session, admin, admin.id)
        self.assertEqual(UserStore(self.session).count_by_role("Admin"), 1)


class TestBcryptRunsOutsideTransaction(AccountsTestCase):
    """Slow hash and verify calls never run while a database transaction is open."""

    def _checked_hash(self, plain: str, rounds: int = 12) -> str:
        self.assertFalse(self.session.in_transaction())
        return hash_password(plain, rounds=rounds)

    def _checked_verify(self, plain: str, hashed: str) -> bool:
        self.assertFalse(self.session.in_transaction())
        return verify_password(plain, hashed)

    def test_register_hashes_without_open_transaction(self) -> None:
        UserStore(self.session).list_all()
        self.assertTrue(self.session.in_transaction())
        with patch("warden.services.accounts.hash_password", side_effect=self._checked_hash) as hashed:
            accounts.register(self.session, self.settings, "Alice", "alice@example.com", PASSWORD)
        hashed.assert_called_once()

    def test_login_verifies_without_open_transaction(self) -> None:
        accounts.register(self.session, self.settings, "Alice", "alice@example.com", PASSWORD)
        with patch(
            "warden.services.accounts.verify_password", side_effect=self._checked_verify
        ) as verified:
            accounts.login(self.session, self.settings, "alice@example.com", PASSWORD)
            with self.assertRaises(InvalidCredentialsError):
                accounts.login(self.session, self.settings, "ghost@example.com", PASSWORD)
        self.assertEqual(verified.call_count, 2)
        self.assertFalse(self.session.in_transaction())

    def test_password_update_hashes_without_open_transaction(self) -> None:
        alice = accounts.register(
            self.session, self.settings, "Alice", "alice@example.com", PASSWORD
        ).user
        actor = _principal(self.session, alice.id)
        self.assertTrue(self.session.in_transaction())
        with patch("warden.services.accounts.hash_password", side_effect=self._checked_hash) as hashed:
            accounts.update_user(
                self.session, self.settings, actor, alice.id, password="NewSecret9"
            )
        hashed.assert_called_once()


class TestScenarios(AccountsTestCase):
    def test_registered_user_updates_self_but_cannot_list(self) -> None:
        registered = accounts.register(
            self.session, self.settings, "Alice", "alice@example.com", PASSWORD
        )
        self.assertEqual(registered.user.role, "User")
        logged_in = accounts.login(self.session, self.settings, "alice@example.com", PASSWORD)
        alice = accounts.authenticate(self.session, self.settings, logged_in.token.access_token)

        updated = accounts.update_user(
            self.session, self.settings, alice, alice.id, name="Alicia"
        )
        self.assertEqual(updated.name, "Alicia")
        with self.assertRaises(UnauthorizedError):
            accounts.list_users(self.session, alice)

    def test_two_admins_then_last_admin_protected(self) -> None:
        x = self._admin("X", "x@example.com")
        y = self._admin("Y", "y@example.com")

        accounts.delete_user(self.session, x, y.id)
        self.assertEqual(UserStore(self.session).count_by_role("Admin"), 1)

        with self.assertRaises(LastAdminProtectedError):
            accounts.delete_user(self.session, x, x.id)
        self.assertEqual(UserStore(self.session).count_by_role("Admin"), 1)


if __name__ == "__main__":
    unittest.main()
