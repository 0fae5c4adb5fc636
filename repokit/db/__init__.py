"""
Database Module

Database connectivity and session management.

Architecture Overview:
======================
┌─────────────────────────────────────────────────────────────────────────────┐
│                        DATABASE LAYER                                       │
├─────────────────────────────────────────────────────────────────────────────┤
│                                                                             │
│   Caller (web handler, job, script)                                         │
│       │                                                                     │
│       │  with adapter.session() as session:                                 │
│       ▼                                                                     │
│   ┌─────────────────────────────────────────────────────────────┐          │
│   │              Session (from session.py)                      │          │
│   │  - Commit on success, rollback on exception, always close   │          │
│   └─────────────────────────────────────────────────────────────┘          │
│       │                                                                     │
│       │  Passed to Repository                                               │
│       ▼                                                                     │
│   ┌─────────────────────────────────────────────────────────────┐          │
│   │   Repository → CacheService → DatabaseService → SQL         │          │
│   └─────────────────────────────────────────────────────────────┘          │
│                                                                             │
└─────────────────────────────────────────────────────────────────────────────┘
"""

from repokit.db.session import DatabaseAdapter, get_database_adapter

__all__ = [
    "DatabaseAdapter",  # Engine + session factory
    "get_database_adapter",  # Singleton built from settings
]
