"""Validation rules of warden.core.config.Settings."""

import unittest

from pydantic import SecretStr, ValidationError

from warden.core.config import Settings


def _settings(**overrides: object) -> Settings:
    values: dict[str, object] = {"DATABASE_URL": "sqlite://"}
    values.update(overrides)
    return Settings(_env_file=None, **values)


class TestDatabaseUrl(unittest.TestCase):
    def test_accepts_postgres_and_sqlite(self) -> None:
        for url in ("postgresql+psycopg2://u:p@h/db", "postgres://u:p@h/db", "sqlite:///./warden.db"):
            with self.subTest(url=url):
                self.assertEqual(_settings(DATABASE_URL=url).DATABASE_URL, url)

    def test_rejects_other_schemes(self) -> None:
        with self.assertRaises(ValidationError):
            _settings(DATABASE_URL="mysql://u:p@h/db")

    def test_rejects_blank(self) -> None:
        with self.assertRaises(ValidationError):
            _settings(DATABASE_URL="   ")


class TestJwtSettings(unittest.TestCase):
    def test_blank_secret_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            _settings(JWT_SECRET=SecretStr("  "))

    def test_non_hmac_algorithm_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            _settings(JWT_ALGORITHM="RS256")

    def test_expire_minutes_bounds(self) -> None:
        with self.assertRaises(ValidationError):
            _settings(JWT_EXPIRE_MINUTES=0)
        with self.assertRaises(ValidationError):
            _settings(JWT_EXPIRE_MINUTES=10081)
        self.assertEqual(_settings(JWT_EXPIRE_MINUTES=30).JWT_EXPIRE_MINUTES, 30)


class TestBcryptRounds(unittest.TestCase):
    def test_bounds(self) -> None:
        with self.assertRaises(ValidationError):
            _settings(BCRYPT_ROUNDS=3)
        self.assertEqual(_settings(BCRYPT_ROUNDS=10).BCRYPT_ROUNDS, 10)


if __name__ == "__main__":
    unittest.main()
