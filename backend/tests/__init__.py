"""
Test Suite

This module contains all tests for the Caseflow workflow engine backend.

Structure:
    tests/
    ├── __init__.py         # This file
    ├── conftest.py         # In-memory repositories, fake AI advisor, wired engine
    ├── unit/               # Engine, models, repositories and services
    └── integration/        # API endpoint tests (FastAPI TestClient)

To run tests:
    pytest tests/
    pytest tests/unit/
    pytest tests/integration/
"""
