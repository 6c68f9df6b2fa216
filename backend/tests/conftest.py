"""
Fixtures partagées pour tous les tests.
"""
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Base de données de test en mémoire SQLite
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

# Créer un moteur SQLite en mémoire pour les tests
engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Importer Base et les modèles après avoir créé le moteur de test
from ..src.models.db import Base
from ..src.models_quote import QuoteOfferRecord  # noqa: F401
from ..src.api.schemas_wizard import (
    ContainerRate,
    EnrichedWizardData,
    HaulageData,
    HaulagePricing,
    SeafreightData,
    ServiceData,
    SurchargeData,
)
from ..src.services.quote_numbers import QuoteNumberSequence
from ..src.services.quote_offer_repository import QuoteOfferRepository


@pytest.fixture(scope="function")
def db():
    """
    Crée une nouvelle base de données pour chaque test.
    La base est créée au début et supprimée à la fin pour garantir l'isolation.
    """
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.rollback()  # Annuler toute transaction en cours
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def repo(db):
    """Repository branché sur la base de test, numérotation à partir de 1."""
    return QuoteOfferRepository(db, QuoteNumberSequence(1))


@pytest.fixture(scope="function")
def client(db, monkeypatch):
    """
    Crée un client de test FastAPI avec une base de données isolée.
    Remplace SessionLocal et get_db pour utiliser notre base de test.
    """
    from ..src import models
    monkeypatch.setattr(models.db, "SessionLocal", TestingSessionLocal)

    from ..src import db as db_module
    monkeypatch.setattr(db_module, "SessionLocal", TestingSessionLocal)

    from ..main import app
    from ..src.db import get_db as original_get_db

    def override_get_db():
        """
        Override de get_db qui utilise notre session de test.
        """
        try:
            yield db
        finally:
            # Ne pas fermer la session ici, elle sera fermée dans la fixture db
            pass

    app.dependency_overrides[original_get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def enriched_data():
    """Données enrichies type : fret Anvers-Douala, pré-acheminement Lyon-Anvers, deux services."""
    now = datetime.now(timezone.utc)
    return EnrichedWizardData(
        seafreights=[
            SeafreightData(
                id="sf-1",
                carrier="MAERSK",
                service="AE1",
                etd=now + timedelta(days=10),
                eta=now + timedelta(days=30),
                valid_until=now + timedelta(days=60),
                rates=[
                    ContainerRate(container_type="20DV", base_price=Decimal("1250.00")),
                    ContainerRate(container_type="40HC", base_price=Decimal("1890.00")),
                ],
                surcharges=[
                    SurchargeData(code="THC", label="Terminal Handling Charge", value=Decimal("125.00"), unit="per_container", applies_to=["20DV", "40HC"]),
                    SurchargeData(code="DOC", label="Documentation Fee", value=Decimal("50.00"), unit="per_container", applies_to=["20DV", "40HC"]),
                    SurchargeData(code="SEAL", label="Seal Fee", value=Decimal("15.00"), unit="per_container", applies_to=["20DV", "40HC"]),
                ],
            )
        ],
        haulages=[
            HaulageData(
                id="h-1",
                provider="Transports Rhône",
                scope="pre-carriage",
                from_location="Lyon",
                to_location="Antwerp",
                pricing=[
                    HaulagePricing(container_type="20DV", price=Decimal("450.00"), included_waiting_hours=2, extra_hour_price=Decimal("35.00")),
                    HaulagePricing(container_type="40HC", price=Decimal("520.00"), included_waiting_hours=2, extra_hour_price=Decimal("35.00")),
                ],
            )
        ],
        services=[
            ServiceData(id="svc-1", name="Customs clearance", price=Decimal("250.00"), taxable=True),
            ServiceData(id="svc-2", name="Insurance", price=Decimal("115.00"), taxable=True),
        ],
    )
