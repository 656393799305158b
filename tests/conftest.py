"""
Test configuration and fixtures for the Dental Plan Administration API.

The application is pointed at an in-memory SQLite database before it is
imported; every test gets freshly created tables.
"""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["API_KEYS"] = "test-key-123,test-admin-key"
os.environ["RATE_LIMIT_PER_MINUTE"] = "10000"
os.environ["LOG_FORMAT"] = "console"

from typing import Any, Dict

import pytest
from fastapi.testclient import TestClient

from dental_admin.config import settings
from dental_admin.database import Base, SessionLocal, engine, get_db
from dental_admin.main import app

import dental_admin.models  # noqa: F401


@pytest.fixture(scope="function")
def test_db_session():
    """Database session on freshly created tables"""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def api_key() -> str:
    """Provide a valid API key for authenticated requests"""
    keys = settings.get_api_keys()
    if not keys:
        raise RuntimeError("No API keys configured for tests")
    return keys[0]


@pytest.fixture(scope="function")
def client(api_key: str, test_db_session) -> TestClient:
    """FastAPI TestClient with default auth headers"""

    def _override_get_db():
        try:
            yield test_db_session
        finally:
            pass

    app.dependency_overrides[get_db] = _override_get_db

    with TestClient(app) as test_client:
        test_client.headers.update({"X-API-Key": api_key, "X-User-Id": "unit-test"})
        yield test_client

    app.dependency_overrides.pop(get_db, None)


@pytest.fixture(scope="function")
def sample_class_structure() -> Dict[str, Any]:
    """Two classes; cleanings and exams in Preventive, fillings in Basic"""
    return {
        "name": "2025 Large Group PPO Classes",
        "effectiveDate": "2025-01-01",
        "marketSegment": "Large",
        "productType": "PPO",
        "numberOfClasses": 2,
        "classes": [
            {
                "id": "c1",
                "name": "Class 1",
                "benefits": [
                    {"id": "D0120", "name": "Periodic Oral Evaluation"},
                    {"id": "D1110", "name": "Prophylaxis - Adult"},
                    {"id": "D0274", "name": "Bitewings - Four Radiographic Images"},
                ],
            },
            {
                "id": "c2",
                "name": "Class 2",
                "benefits": [
                    {"id": "D2140", "name": "Amalgam - One Surface, Primary or Permanent"},
                ],
            },
        ],
    }


@pytest.fixture(scope="function")
def sample_limit_structure() -> Dict[str, Any]:
    """Limits for the sample class structure; ``benefitClassStructureId`` is filled in by tests"""
    return {
        "name": "2025 Large Group PPO Limits",
        "effectiveDate": "2025-01-01",
        "marketSegment": "Large",
        "productType": "PPO",
        "limits": [
            {
                "benefitId": "D1110",
                "benefitName": "Prophylaxis - Adult",
                "quantity": 2,
                "unit": "n/a",
                "interval": {"type": "per_year", "value": 1},
            },
            {
                "benefitId": "D0274",
                "benefitName": "Bitewings - Four Radiographic Images",
                "quantity": 1,
                "unit": "n/a",
                "interval": {"type": "per_year", "value": 1},
            },
        ],
    }


@pytest.fixture(scope="function")
def sample_plan_data() -> Dict[str, Any]:
    """Plan header; structure ids are filled in by tests"""
    return {
        "name": "Sample Large Group PPO",
        "effectiveDate": "2025-01-01",
        "marketSegment": "Large",
        "customizationLevel": "Standard",
        "productType": "PPO",
        "innTiers": 2,
        "oonCoverage": True,
        "coverageType": "Both",
    }


@pytest.fixture(scope="function")
def create_structures(client: TestClient, sample_class_structure, sample_limit_structure):
    """Store the sample class and limit structures; returns their documents"""

    def _create():
        class_response = client.post("/class-structures/", json=sample_class_structure)
        assert class_response.status_code == 201, class_response.text
        class_document = class_response.json()

        limit_payload = {**sample_limit_structure, "benefitClassStructureId": class_document["_id"]}
        limit_response = client.post("/limit-structures/", json=limit_payload)
        assert limit_response.status_code == 201, limit_response.text
        return class_document, limit_response.json()

    return _create


@pytest.fixture(scope="function")
def plan(client: TestClient, create_structures, sample_plan_data) -> Dict[str, Any]:
    """A stored plan built on the sample structures"""
    class_document, limit_document = create_structures()
    payload = {
        **sample_plan_data,
        "classStructureId": class_document["_id"],
        "limitStructureId": limit_document["_id"],
    }
    response = client.post("/plans/", json=payload)
    assert response.status_code == 201, response.text
    return response.json()
