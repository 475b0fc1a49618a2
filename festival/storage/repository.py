import logging
from decimal import Decimal
from typing import Dict, List, Optional, Tuple
from sqlalchemy import func, or_
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from .models import Registration

logger = logging.getLogger(__name__)


class RegistrationRepository:
    """
    Repositório para operações de persistência de inscrições.
    """

    def __init__(self, db: Session) -> None:
        self._db = db

    def create_registration(
        self,
        name: str,
        document: str,
        email: str,
        phone: str,
        birth_date: str,
        selected_events: List[str],
        participant_counts: Dict[str, int],
        participants: Dict[str, List[str]],
        total_amount: Decimal,
        status: str = "pendente",
        school: Optional[str] = None,
        choreographer: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Registration:
        """
        Cria uma nova inscrição no banco de dados.
        """
        logger.debug(
            f"Criando inscrição: email={email}, events={len(selected_events)}, "
            f"total={total_amount}"
        )

        try:
            registration = Registration(
                name=name,
                document=document,
                email=email,
                phone=phone,
                birth_date=birth_date,
                school=school,
                choreographer=choreographer,
                notes=notes,
                selected_events=list(selected_events),
                participant_counts=dict(participant_counts),
                participants={k: list(v) for k, v in participants.items()},
                total_amount=total_amount,
                status=status,
            )
            self._db.add(registration)
            self._db.commit()
            self._db.refresh(registration)

            # ASSERT: garantir que a inscrição foi persistida com ID
            assert registration.id is not None, (
                "Registration persisted without id! "
                "This indicates a persistence error."
            )

            logger.debug(
                f"Inscrição criada com sucesso: id={registration.id}, email={registration.email}"
            )
            return registration
        except SQLAlchemyError as e:
            logger.error(
                f"Erro de banco de dados ao criar inscrição: email={email}, "
                f"error={type(e).__name__}: {e}",
                exc_info=True,
            )
            self._db.rollback()
            raise

    def get(self, registration_id: int) -> Optional[Registration]:
        return self._db.get(Registration, registration_id)

    def find_conflicts(
        self,
        document: str,
        email: str,
        exclude_id: Optional[int] = None,
    ) -> List[Registration]:
        """
        Inscrições não canceladas com o mesmo CPF ou e-mail.
        exclude_id ignora a própria inscrição de quem está reenviando.
        """
        query = (
            self._db.query(Registration)
            .filter(or_(Registration.document == document, Registration.email == email))
            .filter(Registration.status != "cancelada")
        )
        if exclude_id is not None:
            query = query.filter(Registration.id != exclude_id)
        return query.all()

    def count_confirmed_for_event(self, event_id: str) -> int:
        """
        Conta inscrições confirmadas que incluem o evento.
        """
        return self.confirmed_counts_by_event().get(event_id, 0)

    def confirmed_counts_by_event(self) -> Dict[str, int]:
        """
        Número de inscrições confirmadas por evento.
        O agrupamento é feito em Python: selected_events é uma lista JSON.
        """
        confirmed = (
            self._db.query(Registration.selected_events)
            .filter(Registration.status == "confirmada")
            .all()
        )
        counts: Dict[str, int] = {}
        for (events,) in confirmed:
            for event_id in set(events or []):
                counts[event_id] = counts.get(event_id, 0) + 1
        return counts

    def status_totals(self) -> Dict[str, Tuple[int, Decimal]]:
        """
        Quantidade e soma de total_amount por status.
        """
        rows = (
            self._db.query(
                Registration.status,
                func.count(Registration.id),
                func.coalesce(func.sum(Registration.total_amount), 0),
            )
            .group_by(Registration.status)
            .all()
        )
        return {status: (count, Decimal(str(amount))) for status, count, amount in rows}

    def list_recent(self, limit: int = 10) -> List[Registration]:
        return (
            self._db.query(Registration)
            .order_by(Registration.created_at.desc(), Registration.id.desc())
            .limit(limit)
            .all()
        )

    def update_submission(
        self,
        registration_id: int,
        **fields,
    ) -> Optional[Registration]:
        """
        Regrava os dados de uma inscrição pendente que foi reenviada
        (seleção, participantes, total e dados do responsável).
        """
        registration = self.get(registration_id)
        if registration is None:
            return None
        try:
            for name, value in fields.items():
                setattr(registration, name, value)
            self._db.commit()
            self._db.refresh(registration)
            logger.debug(
                f"Inscrição reenviada atualizada: id={registration_id}, "
                f"total={registration.total_amount}"
            )
            return registration
        except SQLAlchemyError as e:
            logger.error(
                f"Erro ao atualizar inscrição reenviada: id={registration_id}, "
                f"error={type(e).__name__}: {e}",
                exc_info=True,
            )
            self._db.rollback()
            raise

    def update_status(self, registration_id: int, status: str) -> Optional[Registration]:
        registration = self.get(registration_id)
        if registration is None:
            return None
        try:
            registration.status = status
            self._db.commit()
            self._db.refresh(registration)
            logger.debug(f"Status atualizado: id={registration_id}, status={status}")
            return registration
        except SQLAlchemyError as e:
            logger.error(
                f"Erro ao atualizar status da inscrição: id={registration_id}, "
                f"error={type(e).__name__}: {e}",
                exc_info=True,
            )
            self._db.rollback()
            raise

    def list_all(self, status: Optional[str] = None) -> List[Registration]:
        query = self._db.query(Registration)
        if status:
            query = query.filter(Registration.status == status)
        return query.order_by(Registration.created_at.desc()).all()
