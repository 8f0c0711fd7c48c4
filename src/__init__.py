"""
Pool Schedule API - session schedule history and SEO highlights for pools.

This package contains the complete application:
- core: Framework-agnostic schedule models and query validation
- infrastructure: Database connections, gateway and repositories
- api: FastAPI routes and dependencies
- config: Application configuration
"""

__version__ = "0.1.0"
