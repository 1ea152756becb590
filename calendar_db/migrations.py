#!/usr/bin/env python3
"""
Database Migration Utilities for the Academic Calendar Store
Applies schema.sql and tracks applied migrations with a checksum.
"""

import hashlib
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import psycopg2

from .connection import DatabaseConnectionManager

# Configure logging
logger = logging.getLogger(__name__)

SCHEMA_MIGRATION_NAME = "initial_schema"


class DatabaseMigrator:
    """
    Handles schema setup and migration history for the academic calendar tables.
    """

    def __init__(self, connection_manager: DatabaseConnectionManager, schema_file: Optional[Path] = None):
        """
        Initialize the database migrator.

        Args:
            connection_manager: Pooled connection source
            schema_file: SQL file to apply. Defaults to schema.sql next to this module.
        """
        self.connection_manager = connection_manager
        self.schema_file = schema_file or Path(__file__).parent / "schema.sql"

    def create_migration_history_table(self):
        """Create the schema migrations tracking table if it doesn't exist."""
        try:
            with self.connection_manager.get_cursor() as cur:
                cur.execute("""
                    CREATE TABLE IF NOT EXISTS schema_migrations (
                        id SERIAL PRIMARY KEY,
                        migration_name VARCHAR(255) NOT NULL UNIQUE,
                        applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                        checksum VARCHAR(64),
                        status VARCHAR(20) DEFAULT 'success'
                    )
                """)
            logger.info("✅ Migration history table created/verified")
        except psycopg2.Error as e:
            logger.error(f"❌ Failed to create migration history table: {e}")
            raise

    def is_migration_applied(self, migration_name: str, checksum: str) -> bool:
        """
        Check whether a migration with this exact content has been applied.

        Args:
            migration_name: Name of the migration
            checksum: Checksum of the migration content
        """
        with self.connection_manager.get_cursor() as cur:
            cur.execute(
                """
                SELECT COUNT(*) AS count FROM schema_migrations
                WHERE migration_name = %s AND checksum = %s AND status = 'success'
                """,
                (migration_name, checksum)
            )
            return cur.fetchone()['count'] > 0

    def record_migration(self, migration_name: str, checksum: str, status: str = 'success'):
        """Record a migration in the history table."""
        with self.connection_manager.get_cursor() as cur:
            cur.execute(
                """
                INSERT INTO schema_migrations (migration_name, checksum, status)
                VALUES (%s, %s, %s)
                ON CONFLICT (migration_name)
                DO UPDATE SET
                    applied_at = CURRENT_TIMESTAMP,
                    checksum = EXCLUDED.checksum,
                    status = EXCLUDED.status
                """,
                (migration_name, checksum, status)
            )
        logger.info(f"✅ Migration '{migration_name}' recorded with status: {status}")

    def calculate_checksum(self, content: str) -> str:
        return hashlib.sha256(content.encode('utf-8')).hexdigest()

    def run_schema_migration(self, force: bool = False) -> bool:
        """
        Apply schema.sql in a single transaction.

        Args:
            force: If True, apply even when the same checksum is already recorded

        Returns:
            True if successful, False otherwise
        """
        if not self.schema_file.exists():
            logger.error(f"❌ Schema file not found: {self.schema_file}")
            return False

        schema_content = self.schema_file.read_text(encoding='utf-8')
        checksum = self.calculate_checksum(schema_content)

        if not force and self.is_migration_applied(SCHEMA_MIGRATION_NAME, checksum):
            logger.info(f"✅ Migration '{SCHEMA_MIGRATION_NAME}' already applied, skipping")
            return True

        try:
            with self.connection_manager.get_cursor() as cur:
                cur.execute(schema_content)
            logger.info("✅ Schema migration executed successfully")
        except psycopg2.Error as e:
            logger.error(f"❌ Schema migration failed: {e}")
            self.record_migration(SCHEMA_MIGRATION_NAME, checksum, 'failed')
            return False

        self.record_migration(SCHEMA_MIGRATION_NAME, checksum, 'success')
        return True

    def initialize_database(self, force: bool = False) -> bool:
        """
        Create migration tracking and apply the schema.

        Returns:
            True if successful, False otherwise
        """
        logger.info("🚀 Initializing academic calendar database...")

        try:
            self.create_migration_history_table()
            if not self.run_schema_migration(force=force):
                return False

            logger.info("✅ Database initialization completed successfully!")
            return True

        except Exception as e:
            logger.error(f"❌ Database initialization failed: {e}")
            return False

    def get_migration_status(self) -> Dict[str, Any]:
        """
        Get applied migrations and table row counts.

        Returns:
            Dictionary with migration status information
        """
        try:
            with self.connection_manager.get_cursor() as cur:
                cur.execute("""
                    SELECT migration_name, applied_at, status, checksum
                    FROM schema_migrations
                    ORDER BY applied_at DESC
                """)
                migrations = cur.fetchall()

                cur.execute("SELECT to_regclass('public.academic_years') IS NOT NULL AS table_exists")
                table_exists = cur.fetchone()['table_exists']

                year_count = 0
                semester_count = 0
                if table_exists:
                    cur.execute("""
                        SELECT (SELECT COUNT(*) FROM academic_years) AS years,
                               (SELECT COUNT(*) FROM semesters) AS semesters
                    """)
                    counts = cur.fetchone()
                    year_count = counts['years']
                    semester_count = counts['semesters']

            return {
                'database_connected': True,
                'table_exists': table_exists,
                'academic_year_count': year_count,
                'semester_count': semester_count,
                'migrations': [
                    {
                        'name': m['migration_name'],
                        'applied_at': m['applied_at'].isoformat() if m['applied_at'] else None,
                        'status': m['status'],
                        'checksum': m['checksum']
                    } for m in migrations
                ]
            }

        except Exception as e:
            logger.error(f"Failed to get migration status: {e}")
            return {
                'database_connected': False,
                'error': str(e)
            }
