"""Pytest fixtures for testing"""

import pytest
from typing import Any, Callable, Dict, Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from abfi_bankability.api.main import create_app
from abfi_bankability.infrastructure.database.models import Base
from abfi_bankability.infrastructure.database.session import get_db
from abfi_bankability.domain.models import (
    ConcentrationData,
    OperationalData,
    ProjectSupply,
    SupplyAgreement,
    SupplyPosition,
)


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


EXCELLENT_AGREEMENT: Dict[str, Any] = {
    "supplier_id": "S1",
    "tier": "tier1",
    "annual_volume": 10000,
    "term_years": 10,
    "pricing_mechanism": "fixed",
    "grower_qualification": 1,
    "lender_step_in_rights": True,
    "lender_consent_required": True,
    "early_termination_notice_days": 720,
    "force_majeure_volume_reduction_cap": 30,
    "bank_guarantee_percent": 10,
}

EXCELLENT_OPERATIONS: Dict[str, Any] = {
    "logistics_contracted": True,
    "logistics_tested": True,
    "qa_system_status": "operational",
    "abfi_integration": "full",
    "contingency_plans": "comprehensive",
}


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db: Session) -> TestClient:
    """Create FastAPI test client with test database"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


@pytest.fixture
def make_agreement() -> Callable[..., SupplyAgreement]:
    """Factory for agreements with bankable defaults; keyword overrides win"""

    def _make(**overrides: Any) -> SupplyAgreement:
        return SupplyAgreement(**{**EXCELLENT_AGREEMENT, **overrides})

    return _make


@pytest.fixture
def make_operational() -> Callable[..., OperationalData]:
    """Factory for operational data, fully ready by default"""

    def _make(**overrides: Any) -> OperationalData:
        return OperationalData(**{**EXCELLENT_OPERATIONS, **overrides})

    return _make


@pytest.fixture
def make_positions() -> Callable[..., ConcentrationData]:
    """Factory for concentration data from a list of supplier volumes"""

    def _make(*volumes: float, climate_zones: int = 4) -> ConcentrationData:
        positions = tuple(SupplyPosition(supplier_id=f"S{i}", volume=v) for i, v in enumerate(volumes, 1))
        return ConcentrationData(positions=positions, climate_zones=climate_zones)

    return _make


@pytest.fixture
def bankable_supply(make_agreement) -> ProjectSupply:
    """125% primary and 35% secondary coverage, all terms beyond tenor + 3 years"""
    return ProjectSupply(
        nameplate_capacity=100000,
        debt_tenor_years=7,
        agreements=(
            make_agreement(supplier_id="S1", tier="tier1", annual_volume=100000, term_years=15),
            make_agreement(supplier_id="S2", tier="tier2", annual_volume=25000, term_years=15),
            make_agreement(supplier_id="S3", tier="option", annual_volume=35000, term_years=15),
        ),
    )


def _agreement_payload(supplier_id: str, tier: str, volume: float, **overrides: Any) -> Dict[str, Any]:
    payload = {**EXCELLENT_AGREEMENT, "supplier_id": supplier_id, "tier": tier, "annual_volume": volume}
    payload["term_years"] = 15
    payload.update(overrides)
    return payload


@pytest.fixture
def strong_project_payload() -> Dict[str, Any]:
    """Diversified, fully contracted project expected to rate AAA"""
    agreements = [_agreement_payload(f"T{i}", "tier1", 12500) for i in range(1, 9)]
    agreements += [
        _agreement_payload(f"T{i}", "tier2", 12500, bank_guarantee_percent=5) for i in (9, 10)
    ]
    agreements.append(_agreement_payload("O1", "option", 20000, bank_guarantee_percent=None))
    agreements.append(_agreement_payload("R1", "rofr", 15000, bank_guarantee_percent=None))
    return {
        "project_id": "proj-strong",
        "nameplate_capacity": 100000,
        "debt_tenor_years": 10,
        "agreements": agreements,
        "climate_zones": 4,
        "operational": dict(EXCELLENT_OPERATIONS),
    }


@pytest.fixture
def weak_project_payload() -> Dict[str, Any]:
    """Single spot-priced supplier, under-contracted, no operational readiness"""
    return {
        "project_id": "proj-weak",
        "nameplate_capacity": 100000,
        "debt_tenor_years": 10,
        "agreements": [
            {
                "supplier_id": "S1",
                "tier": "tier1",
                "annual_volume": 80000,
                "term_years": 3,
                "pricing_mechanism": "spot_reference",
                "grower_qualification": 4,
                "lender_step_in_rights": False,
                "lender_consent_required": False,
                "early_termination_notice_days": 30,
            }
        ],
        "climate_zones": 1,
        "operational": {
            "logistics_contracted": False,
            "logistics_tested": False,
            "qa_system_status": "planning",
            "abfi_integration": "none",
            "contingency_plans": "none",
        },
    }
