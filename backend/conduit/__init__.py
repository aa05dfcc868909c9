"""
Conduit Articles Backend — Application Package
===============================================

What: The article feature of a Conduit-style blogging backend.
Who:  Imported by uvicorn (conduit.main:app), Alembic, and pytest.

Layering:
    ┌─────────────────────────────────────┐
    │   Routes (route table + guards)     │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │   Services (ArticleService, checks) │  ← Facts, assertions, DTOs
    ├─────────────────────────────────────┤
    │   Models & Schemas                  │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │   Database (async sessions)         │
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
