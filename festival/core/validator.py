"""
Validação de elegibilidade de uma inscrição.

Todas as verificações rodam sempre; os erros são acumulados para que a
interface mostre a lista completa de correções de uma vez. Nada aqui
levanta exceção para entradas estruturalmente válidas.
"""
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional

from ..domain.regulation import ENSEMBLE_MIN_PARTICIPANTS, AgeCategory, is_modality_allowed
from .catalog import Catalog, EventOffering
from .normalizers import (
    calculate_age,
    digits_only,
    is_valid_cpf,
    is_valid_email,
    parse_birth_date,
)
from .registration_state import RegistrationCandidate
from .selection import SelectionState, required_slots

logger = logging.getLogger(__name__)


MIN_PHONE_DIGITS = 10

REQUIRED_FIELDS = (
    ("name", "Nome é obrigatório"),
    ("document", "Documento é obrigatório"),
    ("email", "Email é obrigatório"),
    ("phone", "Celular é obrigatório"),
    ("birth_date", "Data de nascimento é obrigatória"),
)


@dataclass
class ValidationResult:
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict:
        return {"valid": self.valid, "errors": list(self.errors), "warnings": list(self.warnings)}


def validate(
    candidate: RegistrationCandidate,
    selection: SelectionState,
    catalog: Catalog,
    reference_date: Optional[date] = None,
    strict_age: bool = False,
) -> ValidationResult:
    """
    Confere uma inscrição contra o regulamento.

    Args:
        candidate: Dados informados pelo responsável
        selection: Eventos selecionados na sessão
        catalog: Catálogo usado para resolver os ids selecionados
        reference_date: Data usada no cálculo da idade (hoje, se omitida)
        strict_age: Se True, idade fora das categorias selecionadas é erro;
                    caso contrário vira aviso

    Returns:
        ValidationResult com todos os erros e avisos encontrados
    """
    result = ValidationResult()

    _check_required_fields(candidate, result)
    _check_formats(candidate, result)

    offerings = _resolve_selection(selection, catalog, result)
    _check_participants(candidate, selection, offerings, result)
    _check_age(candidate, offerings, result, reference_date, strict_age)
    _check_group_size(selection, offerings, result)

    if not result.valid:
        logger.debug(
            f"Inscrição inválida: errors={len(result.errors)}, "
            f"warnings={len(result.warnings)}, selected={len(selection.selected)}"
        )
    return result


def _check_required_fields(candidate: RegistrationCandidate, result: ValidationResult) -> None:
    for attr, message in REQUIRED_FIELDS:
        value = getattr(candidate, attr) or ""
        if not value.strip():
            result.errors.append(message)


def _check_formats(candidate: RegistrationCandidate, result: ValidationResult) -> None:
    # Campos vazios já foram reportados como obrigatórios
    document = candidate.document or ""
    email = candidate.email or ""
    phone = candidate.phone or ""

    if document.strip() and not is_valid_cpf(document):
        result.errors.append("CPF inválido: informe os 11 dígitos de um CPF válido")

    if email.strip() and not is_valid_email(email):
        result.errors.append("Email inválido")

    if phone.strip() and len(digits_only(phone)) < MIN_PHONE_DIGITS:
        result.errors.append(f"Celular inválido: informe DDD e número (mínimo {MIN_PHONE_DIGITS} dígitos)")


def _resolve_selection(
    selection: SelectionState,
    catalog: Catalog,
    result: ValidationResult,
) -> List[EventOffering]:
    if selection.is_empty():
        result.errors.append("Selecione pelo menos uma modalidade")
        return []

    offerings = []
    for event_id in selection.selected:
        offering = catalog.find(event_id)
        if offering is None:
            result.errors.append(f"Evento {event_id} não encontrado")
            continue
        if not is_modality_allowed(offering.style, offering.modality):
            result.errors.append(
                f"Modalidade '{offering.modality.display_name}' não é permitida "
                f"para o estilo '{offering.style.display_name}'"
            )
        if not offering.available:
            result.errors.append(f"Evento {offering.title} não está disponível para inscrição")
        offerings.append(offering)
    return offerings


def _check_participants(
    candidate: RegistrationCandidate,
    selection: SelectionState,
    offerings: List[EventOffering],
    result: ValidationResult,
) -> None:
    for offering in offerings:
        slots = required_slots(offering, selection)
        names = (candidate.participants or {}).get(offering.id) or []
        filled = [n for n in names[:slots] if n and n.strip()]
        blank = slots - len(filled)
        if blank > 0:
            result.errors.append(
                f"Informe o nome de todos os participantes de \"{offering.title}\": "
                f"{blank} de {slots} em branco"
            )


def _check_age(
    candidate: RegistrationCandidate,
    offerings: List[EventOffering],
    result: ValidationResult,
    reference_date: Optional[date],
    strict_age: bool,
) -> None:
    raw_birth = candidate.birth_date or ""
    if not raw_birth.strip():
        return

    reference = reference_date or date.today()
    birth = parse_birth_date(raw_birth)
    # Data no futuro é erro mesmo fora do modo estrito
    if birth is None or birth > reference:
        result.errors.append("Data de nascimento inválida")
        return

    age = calculate_age(birth, reference)
    target = result.errors if strict_age else result.warnings

    if AgeCategory.for_age(age) is None:
        target.append(f"Idade {age} não se enquadra em nenhuma categoria válida")
        return

    if offerings and not any(o.accepts_age(age) for o in offerings):
        titles = ", ".join(f"\"{o.title}\"" for o in offerings)
        target.append(f"Idade {age} anos não é compatível com a categoria dos eventos {titles}")


def _check_group_size(
    selection: SelectionState,
    offerings: List[EventOffering],
    result: ValidationResult,
) -> None:
    for offering in offerings:
        if not offering.is_ensemble:
            continue
        count = selection.participant_counts.get(offering.id, 0)
        if count < ENSEMBLE_MIN_PARTICIPANTS:
            result.errors.append(
                f"Modalidade Conjunto requer mínimo de {ENSEMBLE_MIN_PARTICIPANTS} bailarinos "
                f"(\"{offering.title}\" tem {count})"
            )
