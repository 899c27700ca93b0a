"""
ContactBook Backend - Application Package
==========================================

Layered architecture:

    ┌─────────────────────────────────────┐
    │   Middleware (request ID, CORS,     │  ← cross-cutting, every request
    │   rate limit, logging)              │
    ├─────────────────────────────────────┤
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← ownership, uniqueness rules
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
