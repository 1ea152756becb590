#!/usr/bin/env python3
"""
Database Package for the Academic Calendar Store
Provides a unified interface for connections, schema setup, operations and the async repository.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from .connection import (
    DatabaseConfig,
    DatabaseConnectionManager,
    get_database_manager,
    reset_database_manager,
)
from .migrations import DatabaseMigrator
from .operations import (
    AcademicCalendarOperations,
    DatabaseOperationError,
    NonRetryableError,
    PostgresAcademicCalendarRepository,
    RetryableError,
)

# Configure logging
logger = logging.getLogger(__name__)

__version__ = "1.0.0"


class DatabaseManager:
    """
    Unified database management interface for the academic calendar store.
    Combines connection management, migrations, operations and the async repository.
    """

    def __init__(self, config: Optional[DatabaseConfig] = None):
        """
        Initialize the unified database manager.

        Args:
            config: Database configuration. If None, uses the shared manager configured
                    from environment variables.
        """
        self._shared = config is None
        if self._shared:
            self.connection_manager = get_database_manager()
        else:
            self.connection_manager = DatabaseConnectionManager(config)
        self.config = self.connection_manager.config
        self.migrator = DatabaseMigrator(self.connection_manager)
        self.operations = AcademicCalendarOperations(self.connection_manager)
        self.repository = PostgresAcademicCalendarRepository(self.operations)

    def initialize_system(self, force: bool = False) -> Dict[str, Any]:
        """
        Validate configuration, test connectivity and apply the schema.

        Args:
            force: If True, reapply the schema even if already recorded

        Returns:
            Dictionary with initialization results
        """
        logger.info("🚀 Initializing Academic Calendar Database System...")

        results = {
            'timestamp': datetime.now().isoformat(),
            'success': False,
            'steps_completed': [],
            'errors': [],
            'config': self.config.describe()
        }

        logger.info("Step 1: Testing database connectivity...")
        if not self.connection_manager.ping():
            results['errors'].append("Database connectivity test failed")
            logger.error("❌ Database connectivity test failed")
            return results
        results['steps_completed'].append("connectivity_tested")

        logger.info("Step 2: Initializing database schema...")
        if not self.migrator.initialize_database(force=force):
            results['errors'].append("Database schema initialization failed")
            logger.error("❌ Database schema initialization failed")
            return results
        results['steps_completed'].append("schema_initialized")

        results['migration_status'] = self.migrator.get_migration_status()
        results['success'] = True
        logger.info("🎉 Database system initialization completed successfully!")
        return results

    def get_status(self) -> Dict[str, Any]:
        """
        Database health plus applied migrations and row counts.

        Migration status is only queried when the database is reachable.
        """
        status = {'health': self.connection_manager.health_check()}
        if 'server_version' in status['health']:
            status['migrations'] = self.migrator.get_migration_status()
        return status

    def shutdown(self):
        """Close all pooled connections."""
        logger.info("🔄 Shutting down database system...")
        if self._shared:
            reset_database_manager()
        else:
            self.connection_manager.close()


__all__ = [
    'DatabaseManager',
    'DatabaseConfig',
    'DatabaseConnectionManager',
    'DatabaseMigrator',
    'AcademicCalendarOperations',
    'PostgresAcademicCalendarRepository',
    'DatabaseOperationError',
    'RetryableError',
    'NonRetryableError',
    'get_database_manager',
    'reset_database_manager',
]
