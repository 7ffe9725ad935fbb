"""
CaddieAI Backend — Application Package
=======================================

What: The service layer of the CaddieAI golf-caddie mobile backend.
Who:  Imported by uvicorn (`caddie.main:app`), Alembic and pytest.

Architecture Note:
    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← courses, email, shot type,
    │                                     │    golf context, voice sessions
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    Routes translate HTTP into service calls; services own every business
    rule and can be tested with a mocked session.
"""

__version__ = "1.0.0"
