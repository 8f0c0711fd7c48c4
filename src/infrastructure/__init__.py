"""
Infrastructure layer - external service integrations.

- database: Snowflake (or SQLite in mock mode) behind a prepared-statement
  gateway, plus the repositories that own all SQL.
"""
