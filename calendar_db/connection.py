#!/usr/bin/env python3
"""
PostgreSQL Connections for the Academic Calendar Store
A lazily created, thread-safe connection pool plus a transactional cursor helper.
Settings come from DB_* environment variables (POSTGRES_* are accepted as fallbacks).
"""

import logging
import os
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Iterator, List, Optional

import psycopg2
from psycopg2 import pool
from psycopg2.extras import RealDictCursor

# Configure logging
logger = logging.getLogger(__name__)

ACADEMIC_TABLES = ('academic_years', 'semesters')


@dataclass
class DatabaseConfig:
    """Connection and pool settings."""
    host: str = 'localhost'
    port: int = 5432
    database: str = 'academic_calendar'
    user: str = 'postgres'
    password: str = ''
    min_connections: int = 1
    max_connections: int = 10
    connect_timeout: int = 10
    ssl_mode: str = 'prefer'

    @classmethod
    def from_environment(cls) -> 'DatabaseConfig':
        """Read settings from the environment, keeping defaults for unset variables."""
        return cls(
            host=os.getenv('DB_HOST', cls.host),
            port=int(os.getenv('DB_PORT', cls.port)),
            database=os.getenv('DB_NAME', os.getenv('POSTGRES_DB', cls.database)),
            user=os.getenv('DB_USER', os.getenv('POSTGRES_USER', cls.user)),
            password=os.getenv('DB_PASSWORD', os.getenv('POSTGRES_PASSWORD', cls.password)),
            min_connections=int(os.getenv('DB_MIN_CONNECTIONS', cls.min_connections)),
            max_connections=int(os.getenv('DB_MAX_CONNECTIONS', cls.max_connections)),
            connect_timeout=int(os.getenv('DB_CONNECT_TIMEOUT', cls.connect_timeout)),
            ssl_mode=os.getenv('DB_SSL_MODE', cls.ssl_mode),
        )

    def connection_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments for psycopg2.connect; rows come back as dictionaries."""
        return {
            'host': self.host,
            'port': self.port,
            'dbname': self.database,
            'user': self.user,
            'password': self.password,
            'connect_timeout': self.connect_timeout,
            'sslmode': self.ssl_mode,
            'cursor_factory': RealDictCursor,
        }

    def problems(self) -> List[str]:
        """Configuration problems, empty when the settings are usable."""
        found = [f"{name} is empty" for name in ('host', 'database', 'user') if not getattr(self, name)]
        if not 1 <= self.port <= 65535:
            found.append(f"port out of range: {self.port}")
        if not 1 <= self.min_connections <= self.max_connections:
            found.append(f"invalid pool size {self.min_connections}-{self.max_connections}")
        return found

    def describe(self) -> Dict[str, Any]:
        """Settings safe to print (no password)."""
        return {
            'host': self.host,
            'port': self.port,
            'database': self.database,
            'user': self.user,
            'pool': f"{self.min_connections}-{self.max_connections}",
        }


class DatabaseConnectionManager:
    """
    Owns the connection pool for one database.
    Nothing connects until the first cursor is requested.
    """

    def __init__(self, config: Optional[DatabaseConfig] = None):
        """
        Args:
            config: Connection settings. If None, read from the environment.

        Raises:
            ValueError: If the settings are unusable
        """
        self.config = config or DatabaseConfig.from_environment()
        problems = self.config.problems()
        if problems:
            raise ValueError(f"Invalid database configuration: {'; '.join(problems)}")

        self._pool: Optional[pool.ThreadedConnectionPool] = None
        self._pool_lock = threading.Lock()
        self.last_successful_ping: Optional[datetime] = None

    def _get_pool(self) -> pool.ThreadedConnectionPool:
        with self._pool_lock:
            if self._pool is None:
                try:
                    self._pool = pool.ThreadedConnectionPool(
                        self.config.min_connections,
                        self.config.max_connections,
                        **self.config.connection_kwargs()
                    )
                except psycopg2.Error as e:
                    logger.error(f"❌ Could not open connection pool to {self.config.host}/{self.config.database}: {e}")
                    raise
                logger.info(f"✅ Connection pool open ({self.config.min_connections}-{self.config.max_connections})")
            return self._pool

    @contextmanager
    def get_cursor(self) -> Iterator[RealDictCursor]:
        """
        Cursor inside a transaction: committed when the block exits cleanly,
        rolled back otherwise. Connections broken by the failure are discarded.
        """
        connection_pool = self._get_pool()
        conn = connection_pool.getconn()
        discard = False
        try:
            with conn.cursor() as cur:
                yield cur
            conn.commit()
        except (psycopg2.OperationalError, psycopg2.InterfaceError) as e:
            logger.warning(f"⚠️ Dropping broken connection: {e}")
            discard = True
            raise
        except Exception:
            if not conn.closed:
                conn.rollback()
            raise
        finally:
            connection_pool.putconn(conn, close=discard or bool(conn.closed))

    def ping(self) -> bool:
        """True if a trivial query succeeds."""
        try:
            with self.get_cursor() as cur:
                cur.execute("SELECT 1 AS ok")
                ok = cur.fetchone()['ok'] == 1
        except Exception as e:
            logger.error(f"❌ Database ping failed: {e}")
            return False

        if ok:
            self.last_successful_ping = datetime.now()
        return ok

    def health_check(self) -> Dict[str, Any]:
        """
        Connectivity, server version and presence of the academic calendar tables.

        Returns:
            Dictionary with 'status' of 'healthy', 'unhealthy' or 'error'
        """
        report: Dict[str, Any] = {
            'checked_at': datetime.now().isoformat(),
            'connection': self.config.describe(),
        }

        if not self.ping():
            report['status'] = 'unhealthy'
            logger.warning("⚠️ Database unreachable")
            return report

        try:
            with self.get_cursor() as cur:
                cur.execute("SELECT version() AS version")
                report['server_version'] = cur.fetchone()['version']
                tables = {}
                for table in ACADEMIC_TABLES:
                    cur.execute("SELECT to_regclass(%s) IS NOT NULL AS present", (f"public.{table}",))
                    tables[table] = cur.fetchone()['present']
                report['tables'] = tables
        except psycopg2.Error as e:
            report['status'] = 'error'
            report['error'] = str(e)
            logger.error(f"❌ Database health check error: {e}")
            return report

        report['last_successful_ping'] = self.last_successful_ping.isoformat()
        report['status'] = 'healthy' if all(tables.values()) else 'unhealthy'
        logger.info(f"🩺 Database health: {report['status']}")
        return report

    def close(self):
        """Close every pooled connection; a later cursor reopens the pool."""
        with self._pool_lock:
            if self._pool is not None:
                self._pool.closeall()
                self._pool = None
                logger.info("🔌 Connection pool closed")


# Process-wide connection manager configured from the environment
_db_manager: Optional[DatabaseConnectionManager] = None
_manager_lock = threading.Lock()


def get_database_manager() -> DatabaseConnectionManager:
    """Shared connection manager, created from environment variables on first use."""
    global _db_manager

    with _manager_lock:
        if _db_manager is None:
            _db_manager = DatabaseConnectionManager()
        return _db_manager


def reset_database_manager():
    """Close and drop the shared connection manager."""
    global _db_manager
    with _manager_lock:
        if _db_manager is not None:
            _db_manager.close()
        _db_manager = None
