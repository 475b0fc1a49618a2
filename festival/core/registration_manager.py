import logging
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional
from sqlalchemy.orm import sessionmaker, Session
from .catalog import Catalog, EventOffering
from .normalizers import digits_only, format_brl
from .registration_state import RegistrationStatus, RegistrationStep
from .selection import PricingEngine
from .session_manager import RegistrationSession
from .validator import validate
from ..storage.models import Registration
from ..storage.repository import RegistrationRepository
from ..infra.email_service import EmailService

logger = logging.getLogger(__name__)


class SubmissionOutcome(str, Enum):
    ACCEPTED = "accepted"
    INVALID = "invalid"
    CONFLICT = "conflict"
    SOLD_OUT = "sold_out"


class RegistrationStateError(ValueError):
    """Transição de status não permitida (ex: confirmar inscrição cancelada)."""


@dataclass
class Conflict:
    type: str  # "documento" ou "email"
    value: str
    status: str


@dataclass
class StepResult:
    step: RegistrationStep
    moved: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


@dataclass
class SubmissionResult:
    """
    Resultado do envio de uma inscrição para pagamento.
    O total é o valor que a camada de pagamento deve cobrar.
    """
    outcome: SubmissionOutcome
    total_amount: Decimal
    registration_id: Optional[int] = None
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    conflicts: List[Conflict] = field(default_factory=list)

    @property
    def accepted(self) -> bool:
        return self.outcome == SubmissionOutcome.ACCEPTED


@dataclass
class EventOccupancy:
    event_id: str
    title: str
    capacity: int
    current_registrations: int
    available_spots: int


def _occupancy(offering: EventOffering, taken: int) -> EventOccupancy:
    return EventOccupancy(
        event_id=offering.id,
        title=offering.title,
        capacity=offering.capacity,
        current_registrations=taken,
        available_spots=max(0, offering.capacity - taken),
    )


@dataclass
class DashboardReport:
    total_events: int
    confirmed_registrations: int
    pending_registrations: int
    cancelled_registrations: int
    confirmed_revenue: Decimal
    events: List[EventOccupancy] = field(default_factory=list)
    recent_registrations: List[Registration] = field(default_factory=list)


class RegistrationManager:
    """
    Conduz a sessão de inscrição pelas etapas
    seleção -> formulário -> pagamento -> confirmação
    e entrega a inscrição finalizada ao banco.
    """

    def __init__(
        self,
        db_session_factory: sessionmaker,
        email_service: EmailService,
        catalog: Catalog,
        pricing: PricingEngine,
        strict_age: bool = False,
    ) -> None:
        self._db_session_factory = db_session_factory
        self._email_service = email_service
        self._catalog = catalog
        self._pricing = pricing
        self._strict_age = strict_age

    def validate_session(self, session: RegistrationSession):
        return validate(
            session.candidate,
            session.selection,
            self._catalog,
            strict_age=self._strict_age,
        )

    def advance(self, session: RegistrationSession, target: RegistrationStep) -> StepResult:
        """
        Move a sessão para outra etapa, se as pré-condições forem atendidas.
        Os erros ficam guardados na sessão para a interface exibir.
        """
        errors: List[str] = []
        warnings: List[str] = []

        if target == RegistrationStep.FORMULARIO:
            if session.selection.is_empty():
                errors.append("Selecione pelo menos uma modalidade")
        elif target == RegistrationStep.PAGAMENTO:
            validation = self.validate_session(session)
            errors.extend(validation.errors)
            warnings.extend(validation.warnings)
        elif target == RegistrationStep.CONFIRMACAO:
            if not self._is_confirmed(session.registration_id):
                errors.append("Pagamento ainda não confirmado")

        if errors:
            logger.info(
                f"Transição de etapa recusada: session_id={session.session_id}, "
                f"from={session.step.value}, to={target.value}, errors={len(errors)}"
            )
            session.errors = errors
            return StepResult(step=session.step, moved=False, errors=errors, warnings=warnings)

        logger.debug(
            f"Transição de etapa: session_id={session.session_id}, "
            f"from={session.step.value}, to={target.value}"
        )
        session.step = target
        session.errors = []
        return StepResult(step=target, moved=True, warnings=warnings)

    def check_conflicts(
        self,
        document: str,
        email: str,
        exclude_id: Optional[int] = None,
    ) -> List[Conflict]:
        """
        Procura inscrições ativas com o mesmo CPF ou e-mail.
        """
        document = digits_only(document)
        email = email.strip()

        db_session: Session = self._db_session_factory()
        try:
            repo = RegistrationRepository(db_session)
            conflicts = []
            for existing in repo.find_conflicts(document, email, exclude_id=exclude_id):
                if existing.document == document:
                    conflicts.append(Conflict("documento", document, existing.status))
                if existing.email == email:
                    conflicts.append(Conflict("email", email, existing.status))
            if conflicts:
                logger.warning(
                    f"Conflitos de inscrição encontrados: email={email}, conflicts={len(conflicts)}"
                )
            return conflicts
        finally:
            db_session.close()

    def submit(self, session: RegistrationSession) -> SubmissionResult:
        """
        Valida a sessão, confere duplicidade e vagas e grava a inscrição
        como pendente de pagamento.

        Se a sessão já tem uma inscrição pendente, ela é regravada com a
        seleção atual em vez de gerar uma nova.

        A checagem de vagas é uma contagem simples das inscrições confirmadas;
        não há reserva nem bloqueio entre envios simultâneos.
        """
        validation = self.validate_session(session)
        if not validation.valid:
            session.errors = list(validation.errors)
            return SubmissionResult(
                outcome=SubmissionOutcome.INVALID,
                total_amount=Decimal("0.00"),
                errors=list(validation.errors),
                warnings=list(validation.warnings),
            )

        total = self._pricing.compute_total(session.selection)
        candidate = session.candidate
        pending_id = self._pending_registration_id(session.registration_id)

        conflicts = self.check_conflicts(candidate.document, candidate.email, exclude_id=pending_id)
        if conflicts:
            errors = ["Já existe uma inscrição com este documento ou email"]
            session.errors = errors
            return SubmissionResult(
                outcome=SubmissionOutcome.CONFLICT,
                total_amount=total,
                errors=errors,
                warnings=list(validation.warnings),
                conflicts=conflicts,
            )

        fields = dict(
            name=candidate.name.strip(),
            document=digits_only(candidate.document),
            email=candidate.email.strip(),
            phone=digits_only(candidate.phone),
            birth_date=candidate.birth_date.strip(),
            school=candidate.school,
            choreographer=candidate.choreographer,
            notes=candidate.notes,
            selected_events=list(session.selection.selected),
            participant_counts=dict(session.selection.participant_counts),
            participants={
                event_id: list(candidate.participants.get(event_id, []))
                for event_id in session.selection.selected
            },
            total_amount=total,
        )

        db_session: Session = self._db_session_factory()
        try:
            repo = RegistrationRepository(db_session)

            for event_id in session.selection.selected:
                offering = self._catalog.get(event_id)
                taken = repo.count_confirmed_for_event(event_id)
                if taken >= offering.capacity:
                    logger.warning(
                        f"Evento esgotado: session_id={session.session_id}, "
                        f"event_id={event_id}, taken={taken}, capacity={offering.capacity}"
                    )
                    errors = [f"Evento {offering.title} está esgotado"]
                    session.errors = errors
                    return SubmissionResult(
                        outcome=SubmissionOutcome.SOLD_OUT,
                        total_amount=total,
                        errors=errors,
                        warnings=list(validation.warnings),
                    )

            if pending_id is not None:
                registration = repo.update_submission(pending_id, **fields)
            else:
                registration = repo.create_registration(
                    status=RegistrationStatus.PENDENTE.value,
                    **fields,
                )
        finally:
            db_session.close()

        logger.info(
            f"Inscrição registrada aguardando pagamento: session_id={session.session_id}, "
            f"registration_id={registration.id}, total={total}, resubmitted={pending_id is not None}"
        )
        session.registration_id = registration.id
        session.step = RegistrationStep.PAGAMENTO
        session.errors = []
        return SubmissionResult(
            outcome=SubmissionOutcome.ACCEPTED,
            total_amount=total,
            registration_id=registration.id,
            warnings=list(validation.warnings),
        )

    def confirm_payment(self, registration_id: int) -> Optional[Registration]:
        """
        Sinal de pagamento aprovado: confirma a inscrição e envia o e-mail.

        Falhas no envio do e-mail são logadas e não desfazem a confirmação.
        """
        db_session: Session = self._db_session_factory()
        try:
            repo = RegistrationRepository(db_session)
            registration = repo.get(registration_id)
            if registration is None:
                logger.warning(f"Confirmação de pagamento para inscrição inexistente: id={registration_id}")
                return None
            if registration.status == RegistrationStatus.CANCELADA.value:
                raise RegistrationStateError("Inscrição cancelada não pode ser confirmada")
            if registration.status == RegistrationStatus.CONFIRMADA.value:
                logger.info(f"Inscrição já confirmada: id={registration_id}")
                return registration

            registration = repo.update_status(registration_id, RegistrationStatus.CONFIRMADA.value)
        finally:
            db_session.close()

        logger.info(
            f"Pagamento confirmado: registration_id={registration.id}, "
            f"email={registration.email}, total={registration.total_amount}"
        )
        self._send_confirmation(registration)
        return registration

    def cancel(self, registration_id: int) -> Optional[Registration]:
        db_session: Session = self._db_session_factory()
        try:
            repo = RegistrationRepository(db_session)
            registration = repo.update_status(registration_id, RegistrationStatus.CANCELADA.value)
        finally:
            db_session.close()

        if registration is not None:
            logger.info(f"Inscrição cancelada: registration_id={registration_id}")
        return registration

    def list_registrations(self, status: Optional[str] = None) -> List[Registration]:
        db_session: Session = self._db_session_factory()
        try:
            return RegistrationRepository(db_session).list_all(status=status)
        finally:
            db_session.close()

    def occupancy(self) -> Dict[str, EventOccupancy]:
        """
        Inscrições confirmadas e vagas restantes por evento do catálogo.
        """
        db_session: Session = self._db_session_factory()
        try:
            taken = RegistrationRepository(db_session).confirmed_counts_by_event()
        finally:
            db_session.close()
        return {o.id: _occupancy(o, taken.get(o.id, 0)) for o in self._catalog}

    def dashboard(self, recent_limit: int = 10) -> DashboardReport:
        """
        Painel administrativo: ocupação por evento, receita confirmada e
        contagem de inscrições por status.
        """
        db_session: Session = self._db_session_factory()
        try:
            repo = RegistrationRepository(db_session)
            taken = repo.confirmed_counts_by_event()
            totals = repo.status_totals()
            recent = repo.list_recent(recent_limit)
        finally:
            db_session.close()

        def _count(status: RegistrationStatus) -> int:
            return totals.get(status.value, (0, Decimal("0")))[0]

        events = [_occupancy(o, taken.get(o.id, 0)) for o in self._catalog]
        revenue = totals.get(RegistrationStatus.CONFIRMADA.value, (0, Decimal("0")))[1]

        logger.debug(
            f"Painel administrativo montado: confirmed={_count(RegistrationStatus.CONFIRMADA)}, "
            f"revenue={revenue}"
        )
        return DashboardReport(
            total_events=len(self._catalog),
            confirmed_registrations=_count(RegistrationStatus.CONFIRMADA),
            pending_registrations=_count(RegistrationStatus.PENDENTE),
            cancelled_registrations=_count(RegistrationStatus.CANCELADA),
            confirmed_revenue=revenue.quantize(Decimal("0.01")),
            events=events,
            recent_registrations=recent,
        )

    def _pending_registration_id(self, registration_id: Optional[int]) -> Optional[int]:
        if registration_id is None:
            return None
        db_session: Session = self._db_session_factory()
        try:
            registration = RegistrationRepository(db_session).get(registration_id)
            if registration is not None and registration.status == RegistrationStatus.PENDENTE.value:
                return registration.id
            return None
        finally:
            db_session.close()

    def _is_confirmed(self, registration_id: Optional[int]) -> bool:
        if registration_id is None:
            return False
        db_session: Session = self._db_session_factory()
        try:
            registration = RegistrationRepository(db_session).get(registration_id)
            return registration is not None and registration.status == RegistrationStatus.CONFIRMADA.value
        finally:
            db_session.close()

    def _send_confirmation(self, registration: Registration) -> None:
        titles = []
        for event_id in registration.selected_events:
            offering = self._catalog.find(event_id)
            titles.append(offering.title if offering else event_id)

        try:
            self._email_service.send_registration_confirmation(
                to_email=registration.email,
                full_name=registration.name,
                event_titles=titles,
                total_display=format_brl(Decimal(registration.total_amount)),
                registration_id=registration.id,
            )
        except Exception as email_error:
            # Não interrompe o fluxo: a inscrição já está confirmada no banco
            logger.error(
                f"Falha ao enviar e-mail de confirmação: "
                f"to={registration.email}, error={type(email_error).__name__}: {email_error}",
                exc_info=True,
            )
