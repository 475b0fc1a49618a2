"""Tests for the registration flow: steps, submission, payment confirmation."""

import dataclasses
from decimal import Decimal

import pytest

from conftest import JAZZ_DUO_ADULT, JAZZ_SOLO_ADULT, OTHER_VALID_CPF, FakeEmailService, make_candidate
from festival.core.catalog import Catalog
from festival.core.registration_manager import (
    RegistrationManager,
    RegistrationStateError,
    SubmissionOutcome,
)
from festival.core.registration_state import RegistrationStep
from festival.core.selection import PricingEngine
from festival.core.session_manager import RegistrationSession


def _second_session(pricing, event_id=JAZZ_SOLO_ADULT):
    session = RegistrationSession(session_id="sessao-2")
    pricing.toggle_selection(session.selection, event_id)
    session.candidate = make_candidate(document=OTHER_VALID_CPF, email="joana@example.com")
    return session


class TestAdvance:
    """Tests for RegistrationManager.advance"""

    def test_form_requires_a_selection(self, manager):
        session = RegistrationSession(session_id="vazia")

        result = manager.advance(session, RegistrationStep.FORMULARIO)

        assert not result.moved
        assert result.errors == ["Selecione pelo menos uma modalidade"]
        assert session.step == RegistrationStep.SELECAO
        assert session.errors == result.errors

    def test_payment_requires_valid_registration(self, manager, ready_session):
        ready_session.candidate.email = "sem-arroba"

        result = manager.advance(ready_session, RegistrationStep.PAGAMENTO)

        assert not result.moved
        assert result.errors == ["Email inválido"]

    def test_moves_when_preconditions_hold(self, manager, ready_session):
        assert manager.advance(ready_session, RegistrationStep.FORMULARIO).moved
        assert manager.advance(ready_session, RegistrationStep.PAGAMENTO).moved
        assert ready_session.step == RegistrationStep.PAGAMENTO
        assert ready_session.errors == []

    def test_confirmation_requires_confirmed_payment(self, manager, ready_session):
        assert not manager.advance(ready_session, RegistrationStep.CONFIRMACAO).moved

        manager.submit(ready_session)
        manager.confirm_payment(ready_session.registration_id)

        assert manager.advance(ready_session, RegistrationStep.CONFIRMACAO).moved

    def test_going_back_is_always_allowed(self, manager, ready_session):
        manager.advance(ready_session, RegistrationStep.PAGAMENTO)
        assert manager.advance(ready_session, RegistrationStep.SELECAO).moved


class TestSubmit:
    """Tests for RegistrationManager.submit"""

    def test_accepted_registration_is_pending_payment(self, manager, ready_session):
        result = manager.submit(ready_session)

        assert result.accepted
        assert result.total_amount == Decimal("80.00")
        assert result.registration_id is not None
        assert ready_session.registration_id == result.registration_id
        assert ready_session.step == RegistrationStep.PAGAMENTO

        [registration] = manager.list_registrations()
        assert registration.status == "pendente"
        assert registration.document == "12345678909"
        assert registration.phone == "61999380969"
        assert registration.selected_events == [JAZZ_SOLO_ADULT]
        assert registration.participants == {JAZZ_SOLO_ADULT: ["Maria Souza"]}
        assert Decimal(registration.total_amount) == Decimal("80.00")

    def test_invalid_registration_is_not_stored(self, manager, ready_session):
        ready_session.candidate.document = ""

        result = manager.submit(ready_session)

        assert result.outcome == SubmissionOutcome.INVALID
        assert result.errors == ["Documento é obrigatório"]
        assert ready_session.registration_id is None
        assert manager.list_registrations() == []

    def test_duplicate_document_is_a_conflict(self, manager, pricing, ready_session):
        manager.submit(ready_session)
        again = RegistrationSession(session_id="sessao-3")
        pricing.toggle_selection(again.selection, JAZZ_SOLO_ADULT)
        again.candidate = make_candidate(email="outra@example.com")

        result = manager.submit(again)

        assert result.outcome == SubmissionOutcome.CONFLICT
        assert [(c.type, c.status) for c in result.conflicts] == [("documento", "pendente")]

    def test_cancelled_registration_does_not_conflict(self, manager, ready_session):
        manager.submit(ready_session)
        manager.cancel(ready_session.registration_id)

        assert manager.check_conflicts("123.456.789-09", "maria@example.com") == []

    def test_sold_out_event(self, db_session_factory, email_service):
        offerings = [
            dataclasses.replace(o, capacity=1) if o.id == JAZZ_SOLO_ADULT else o
            for o in Catalog()
        ]
        catalog = Catalog(offerings)
        pricing = PricingEngine(catalog)
        manager = RegistrationManager(db_session_factory, email_service, catalog, pricing)

        first = RegistrationSession(session_id="primeira")
        pricing.toggle_selection(first.selection, JAZZ_SOLO_ADULT)
        first.candidate = make_candidate()
        manager.submit(first)
        manager.confirm_payment(first.registration_id)

        result = manager.submit(_second_session(pricing))

        assert result.outcome == SubmissionOutcome.SOLD_OUT
        assert result.errors == ["Evento Jazz - Solo (AVANÇADO) está esgotado"]

    def test_pending_registrations_do_not_use_capacity(self, manager, pricing, ready_session):
        manager.submit(ready_session)
        assert manager.submit(_second_session(pricing)).accepted


class TestConfirmPayment:
    """Tests for RegistrationManager.confirm_payment / cancel"""

    def test_confirms_and_sends_email(self, manager, email_service, ready_session):
        manager.submit(ready_session)

        registration = manager.confirm_payment(ready_session.registration_id)

        assert registration.status == "confirmada"
        [sent] = email_service.sent
        assert sent["to_email"] == "maria@example.com"
        assert sent["event_titles"] == ["Jazz - Solo (AVANÇADO)"]
        assert sent["total_display"] == "R$ 80,00"

    def test_confirming_twice_sends_one_email(self, manager, email_service, ready_session):
        manager.submit(ready_session)
        manager.confirm_payment(ready_session.registration_id)
        manager.confirm_payment(ready_session.registration_id)
        assert len(email_service.sent) == 1

    def test_unknown_registration(self, manager):
        assert manager.confirm_payment(999) is None
        assert manager.cancel(999) is None

    def test_cancelled_cannot_be_confirmed(self, manager, ready_session):
        manager.submit(ready_session)
        manager.cancel(ready_session.registration_id)
        with pytest.raises(RegistrationStateError):
            manager.confirm_payment(ready_session.registration_id)

    def test_email_failure_keeps_confirmation(self, db_session_factory, catalog, pricing, ready_session):
        manager = RegistrationManager(db_session_factory, FakeEmailService(fail=True), catalog, pricing)
        manager.submit(ready_session)

        registration = manager.confirm_payment(ready_session.registration_id)

        assert registration.status == "confirmada"

    def test_list_by_status(self, manager, pricing, ready_session):
        manager.submit(ready_session)
        manager.submit(_second_session(pricing))
        manager.confirm_payment(ready_session.registration_id)

        assert [r.id for r in manager.list_registrations(status="confirmada")] == [ready_session.registration_id]
        assert len(manager.list_registrations()) == 2


class TestResubmit:
    """Tests for submitting again from a session that already has a registration"""

    def test_pending_registration_is_updated_in_place(self, manager, pricing, ready_session):
        first = manager.submit(ready_session)
        pricing.toggle_selection(ready_session.selection, JAZZ_DUO_ADULT)
        ready_session.candidate.participants[JAZZ_DUO_ADULT] = ["Maria Souza", "Joana Lima"]

        again = manager.submit(ready_session)

        assert again.accepted
        assert again.registration_id == first.registration_id
        assert again.total_amount == Decimal("220.00")
        [registration] = manager.list_registrations()
        assert registration.selected_events == [JAZZ_SOLO_ADULT, JAZZ_DUO_ADULT]
        assert Decimal(registration.total_amount) == Decimal("220.00")
        assert registration.participants[JAZZ_DUO_ADULT] == ["Maria Souza", "Joana Lima"]

    def test_confirmed_registration_still_conflicts(self, manager, ready_session):
        manager.submit(ready_session)
        manager.confirm_payment(ready_session.registration_id)

        result = manager.submit(ready_session)

        assert result.outcome == SubmissionOutcome.CONFLICT
        assert len(manager.list_registrations()) == 1


class TestDashboard:
    """Tests for RegistrationManager.dashboard / occupancy"""

    def test_empty_dashboard(self, manager):
        report = manager.dashboard()

        assert report.total_events == 120
        assert report.confirmed_registrations == 0
        assert report.confirmed_revenue == Decimal("0.00")
        assert all(e.available_spots == e.capacity for e in report.events)
        assert report.recent_registrations == []

    def test_counts_and_revenue_by_status(self, manager, pricing, ready_session):
        manager.submit(ready_session)
        manager.confirm_payment(ready_session.registration_id)
        second = _second_session(pricing, JAZZ_DUO_ADULT)
        second.candidate.participants = {JAZZ_DUO_ADULT: ["Joana Lima", "Ana Reis"]}
        manager.submit(second)
        manager.cancel(second.registration_id)
        third = RegistrationSession(session_id="sessao-3")
        pricing.toggle_selection(third.selection, JAZZ_SOLO_ADULT)
        third.candidate = make_candidate(document="52998224725", email="bia@example.com")
        manager.submit(third)

        report = manager.dashboard()

        assert report.confirmed_registrations == 1
        assert report.pending_registrations == 1
        assert report.cancelled_registrations == 1
        assert report.confirmed_revenue == Decimal("80.00")
        solo = next(e for e in report.events if e.event_id == JAZZ_SOLO_ADULT)
        assert (solo.current_registrations, solo.available_spots) == (1, 6)
        assert len(report.recent_registrations) == 3

    def test_occupancy_only_counts_confirmed(self, manager, ready_session):
        manager.submit(ready_session)
        assert manager.occupancy()[JAZZ_SOLO_ADULT].available_spots == 7

        manager.confirm_payment(ready_session.registration_id)

        occupancy = manager.occupancy()
        assert occupancy[JAZZ_SOLO_ADULT].current_registrations == 1
        assert occupancy[JAZZ_SOLO_ADULT].available_spots == 6
        assert len(occupancy) == 120
