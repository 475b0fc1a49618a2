"""Pytest configuration and shared fixtures."""

import os

# festival.api.http monta um app no import; manter esse app longe de Redis e do disco
os.environ["ENV"] = "dev"
os.environ["REDIS_URL"] = ""
os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import date
from typing import List

import pytest

from festival.config import AppConfig
from festival.core.catalog import Catalog
from festival.core.registration_manager import RegistrationManager
from festival.core.registration_state import RegistrationCandidate
from festival.core.selection import PricingEngine, SelectionState
from festival.core.session_manager import RegistrationSession
from festival.storage.database import create_session_factory

VALID_CPF = "12345678909"
OTHER_VALID_CPF = "11144477735"
REFERENCE_DATE = date(2025, 10, 16)

JAZZ_SOLO_ADULT = "JAZZ_SOLO_AVANCADO_20_MAIS"
JAZZ_DUO_ADULT = "JAZZ_DUO_AVANCADO_20_MAIS"
JAZZ_ENSEMBLE_ADULT = "JAZZ_CONJUNTO_AVANCADO_20_MAIS"
JAZZ_SOLO_PRE = "JAZZ_SOLO_PRE_09_11"


class FakeEmailService:
    """Guarda os e-mails em vez de enviar."""

    def __init__(self, fail: bool = False) -> None:
        self.sent: List[dict] = []
        self.fail = fail

    def send_registration_confirmation(self, **kwargs) -> None:
        if self.fail:
            raise ConnectionError("SMTP fora do ar")
        self.sent.append(kwargs)


def make_candidate(document: str = VALID_CPF, email: str = "maria@example.com", **overrides) -> RegistrationCandidate:
    data = dict(
        name="Maria Souza",
        document=document,
        email=email,
        phone="(61) 99938-0969",
        birth_date="2000-01-01",
        participants={JAZZ_SOLO_ADULT: ["Maria Souza"]},
    )
    data.update(overrides)
    return RegistrationCandidate(**data)


@pytest.fixture(scope="session")
def catalog() -> Catalog:
    return Catalog()


@pytest.fixture
def pricing(catalog: Catalog) -> PricingEngine:
    return PricingEngine(catalog)


@pytest.fixture
def state() -> SelectionState:
    return SelectionState()


@pytest.fixture
def candidate() -> RegistrationCandidate:
    return make_candidate()


@pytest.fixture
def db_session_factory(tmp_path):
    return create_session_factory(f"sqlite:///{tmp_path / 'festival.db'}", create_tables=True)


@pytest.fixture
def email_service() -> FakeEmailService:
    return FakeEmailService()


@pytest.fixture
def manager(db_session_factory, email_service, catalog, pricing) -> RegistrationManager:
    return RegistrationManager(
        db_session_factory=db_session_factory,
        email_service=email_service,
        catalog=catalog,
        pricing=pricing,
    )


@pytest.fixture
def ready_session(pricing: PricingEngine) -> RegistrationSession:
    """Sessão com um Solo de Jazz adulto e dados completos."""
    session = RegistrationSession(session_id="sessao-1")
    pricing.toggle_selection(session.selection, JAZZ_SOLO_ADULT)
    session.candidate = make_candidate()
    return session


@pytest.fixture
def app_config(tmp_path) -> AppConfig:
    return AppConfig(
        database_url=f"sqlite:///{tmp_path / 'api.db'}",
        admin_api_key="segredo",
        env="dev",
    )
