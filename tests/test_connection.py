"""Tests for database configuration, health reporting and the shared connection manager."""

from contextlib import contextmanager
from unittest.mock import MagicMock

import psycopg2
import pytest

from calendar_db import DatabaseManager
from calendar_db.connection import (
    DatabaseConfig,
    DatabaseConnectionManager,
    get_database_manager,
    reset_database_manager,
)


@pytest.fixture(autouse=True)
def database_env(monkeypatch):
    for name in ('DB_HOST', 'DB_PORT', 'DB_NAME', 'POSTGRES_DB', 'DB_USER', 'POSTGRES_USER',
                 'DB_PASSWORD', 'POSTGRES_PASSWORD', 'DB_MIN_CONNECTIONS', 'DB_MAX_CONNECTIONS',
                 'DB_CONNECT_TIMEOUT', 'DB_SSL_MODE'):
        monkeypatch.delenv(name, raising=False)
    reset_database_manager()
    yield
    reset_database_manager()


def with_cursor(manager, cursor):
    """Replace the pooled cursor of a manager with the given mock."""
    @contextmanager
    def get_cursor():
        yield cursor

    manager.get_cursor = get_cursor
    return manager


class TestDatabaseConfig:
    """Tests for environment-driven configuration."""

    def test_defaults(self):
        config = DatabaseConfig.from_environment()
        assert config == DatabaseConfig()
        assert config.database == 'academic_calendar'
        assert config.problems() == []

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv('DB_HOST', 'db.internal')
        monkeypatch.setenv('DB_PORT', '6543')
        kwargs = DatabaseConfig.from_environment().connection_kwargs()
        assert kwargs['host'] == 'db.internal'
        assert kwargs['port'] == 6543

    def test_invalid_pool_size(self, monkeypatch):
        monkeypatch.setenv('DB_MIN_CONNECTIONS', '5')
        monkeypatch.setenv('DB_MAX_CONNECTIONS', '2')
        assert DatabaseConfig.from_environment().problems() == ['invalid pool size 5-2']
        with pytest.raises(ValueError, match="pool size"):
            DatabaseConnectionManager()

    def test_describe_hides_password(self):
        assert 'password' not in DatabaseConfig(password='secret').describe()


class TestHealthCheck:
    """Tests for health reporting over a mocked cursor."""

    def test_healthy(self):
        cursor = MagicMock()
        cursor.fetchone.side_effect = [
            {'ok': 1},
            {'version': 'PostgreSQL 16.2'},
            {'present': True},
            {'present': True},
        ]
        manager = with_cursor(DatabaseConnectionManager(DatabaseConfig()), cursor)

        report = manager.health_check()

        assert report['status'] == 'healthy'
        assert report['server_version'] == 'PostgreSQL 16.2'
        assert report['tables'] == {'academic_years': True, 'semesters': True}
        assert report['last_successful_ping'] == manager.last_successful_ping.isoformat()

    def test_missing_tables_are_unhealthy(self):
        cursor = MagicMock()
        cursor.fetchone.side_effect = [{'ok': 1}, {'version': 'PostgreSQL 16.2'}, {'present': True}, {'present': False}]
        manager = with_cursor(DatabaseConnectionManager(DatabaseConfig()), cursor)

        assert manager.health_check()['status'] == 'unhealthy'

    def test_unreachable(self):
        cursor = MagicMock()
        cursor.execute.side_effect = psycopg2.OperationalError("could not connect to server")
        manager = with_cursor(DatabaseConnectionManager(DatabaseConfig()), cursor)

        report = manager.health_check()

        assert report['status'] == 'unhealthy'
        assert manager.last_successful_ping is None
        assert 'server_version' not in report


class TestSharedManager:
    """The pool is created lazily, so no server is needed here."""

    def test_shared_instance(self):
        assert get_database_manager() is get_database_manager()

    def test_reset_creates_new_instance(self):
        first = get_database_manager()
        reset_database_manager()
        assert get_database_manager() is not first

    def test_database_manager_uses_shared_instance(self):
        manager = DatabaseManager()
        assert manager.connection_manager is get_database_manager()
        manager.shutdown()
        assert get_database_manager() is not manager.connection_manager

    def test_database_manager_with_explicit_config(self):
        config = DatabaseConfig()
        manager = DatabaseManager(config)
        assert manager.config is config
        assert manager.connection_manager is not get_database_manager()


class TestDatabaseManagerStatus:
    """Tests for the combined status report."""

    def test_includes_migrations_when_reachable(self):
        manager = DatabaseManager(DatabaseConfig())
        manager.connection_manager.health_check = MagicMock(
            return_value={'status': 'healthy', 'server_version': 'PostgreSQL 16.2'}
        )
        manager.migrator.get_migration_status = MagicMock(return_value={'database_connected': True})

        status = manager.get_status()

        assert status['migrations'] == {'database_connected': True}

    def test_skips_migrations_when_unreachable(self):
        manager = DatabaseManager(DatabaseConfig())
        manager.connection_manager.health_check = MagicMock(return_value={'status': 'unhealthy'})
        manager.migrator.get_migration_status = MagicMock()

        assert 'migrations' not in manager.get_status()
        manager.migrator.get_migration_status.assert_not_called()
