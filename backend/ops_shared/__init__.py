"""
Shared module for cross-cutting concerns of the ops platform backend.

STRUCTURE:
- ops_shared.config: Configuration
  - settings.py: Environment config (pydantic-settings)
  - logging.py: Structured logging
  - constants.py: Roles, task types, lifecycle error codes, limits

- ops_shared.infrastructure: Database
  - db.py: SQLAlchemy engine and sessions, safe_commit(), transactional()

- ops_shared.utils: Utilities
  - exceptions.py: HTTP exceptions with auto-logging

IMPORT EXAMPLES:
    from ops_shared.infrastructure.db import get_db, transactional
    from ops_shared.config.settings import settings
    from ops_shared.config.constants import Roles, ErrorCodes
    from ops_shared.utils.exceptions import NotFoundError, DirectDeletionForbidden
"""
