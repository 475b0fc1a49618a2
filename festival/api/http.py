import logging
from dataclasses import asdict
import time
from decimal import Decimal
from uuid import uuid4
from fastapi import FastAPI, HTTPException, Header, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from typing import Dict, List, Optional
from pydantic import BaseModel, Field
from ..config import AppConfig
from ..core.catalog import EventOffering, UnknownEventError
from ..core.engine import RegistrationEngine
from ..core.normalizers import format_brl, format_cpf, normalize_phone
from ..core.registration_manager import EventOccupancy, RegistrationStateError, SubmissionOutcome
from ..core.registration_state import RegistrationCandidate, RegistrationStep
from ..core.session_manager import RegistrationSession
from ..domain.regulation import AgeCategory, DanceStyle, Modality

logger = logging.getLogger(__name__)


class EventOut(BaseModel):
    id: str
    title: str
    style: str
    modality: str
    category: str
    min_age: int
    max_age: int
    price: str
    price_display: str
    price_note: Optional[str] = None
    time_limit: str
    venue: str
    start_date: str
    end_date: str
    available: bool
    capacity: int
    current_registrations: int
    vacancies: int
    description: str
    notes: List[str] = []


class CatalogStatsOut(BaseModel):
    total_offerings: int
    unique_styles: int
    unique_modalities: int
    unique_categories: int
    total_capacity: int
    min_price: str
    max_price: str
    mean_price: str


class EventSelectionRequest(BaseModel):
    event_id: str


class ParticipantCountRequest(BaseModel):
    event_id: str
    count: int


class CandidateRequest(BaseModel):
    name: str = ""
    document: str = ""
    email: str = ""
    phone: str = ""
    birth_date: str = ""
    school: Optional[str] = None
    choreographer: Optional[str] = None
    notes: Optional[str] = None
    participants: Dict[str, List[str]] = Field(default_factory=dict)


class StepRequest(BaseModel):
    step: RegistrationStep


class SelectedItemOut(BaseModel):
    event_id: str
    title: str
    participants: int
    required_names: int
    price: str
    price_display: str


class SummaryOut(BaseModel):
    count: int
    unique_styles: List[str]
    unique_modalities: List[str]


class SessionOut(BaseModel):
    session_id: str
    step: str
    items: List[SelectedItemOut]
    total: str
    total_display: str
    summary: SummaryOut
    candidate: CandidateRequest
    errors: List[str]
    registration_id: Optional[int] = None


class ValidationOut(BaseModel):
    valid: bool
    errors: List[str]
    warnings: List[str]


class ConflictOut(BaseModel):
    type: str
    value: str
    status: str


class DuplicateCheckRequest(BaseModel):
    document: str
    email: str


class DuplicateCheckOut(BaseModel):
    is_valid: bool
    conflicts: List[ConflictOut]


class SubmissionOut(BaseModel):
    registration_id: int
    total_amount: str
    total_display: str
    warnings: List[str]


class RegistrationOut(BaseModel):
    id: int
    name: str
    document: str
    document_display: str
    email: str
    phone: str
    phone_display: str
    selected_events: List[str]
    participant_counts: Dict[str, int]
    total_amount: str
    status: str
    created_at: str


class EventOccupancyOut(BaseModel):
    event_id: str
    title: str
    capacity: int
    current_registrations: int
    available_spots: int


class DashboardStatsOut(BaseModel):
    total_events: int
    confirmed_registrations: int
    pending_registrations: int
    cancelled_registrations: int
    confirmed_revenue: str
    confirmed_revenue_display: str


class DashboardOut(BaseModel):
    stats: DashboardStatsOut
    events: List[EventOccupancyOut]
    recent_registrations: List[RegistrationOut]


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Middleware que gera request_id único para cada requisição
    e adiciona aos logs e headers de resposta.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = uuid4().hex[:16]  # 16 caracteres hexadecimais
        request.state.request_id = request_id

        start_time = time.time()
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id

        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            f"Request processado: request_id={request_id}, "
            f"method={request.method}, path={request.url.path}, "
            f"status={response.status_code}, duration_ms={duration_ms:.2f}"
        )
        return response


def require_api_key(config: AppConfig, x_api_key: Optional[str]) -> None:
    """
    Valida API key baseado no ambiente.

    Em produção (ENV=prod), sempre exige API key.
    Em desenvolvimento (ENV=dev), só exige se ADMIN_API_KEY estiver configurada.
    """
    expected_key = config.admin_api_key or ""

    if config.env == "prod":
        if not x_api_key or x_api_key != expected_key:
            logger.warning("Tentativa de acesso não autorizado em PRODUÇÃO")
            raise HTTPException(status_code=401, detail="Invalid API key")
    elif expected_key.strip():
        if x_api_key != expected_key:
            logger.warning("Tentativa de acesso não autorizado em DEV")
            raise HTTPException(status_code=401, detail="Invalid API key")
    else:
        logger.debug("ADMIN_API_KEY não configurada, aceitando requisição sem autenticação (modo desenvolvimento)")


def mask_document(document: str) -> str:
    """
    Mascara o CPF para logs: "12345678909" -> "123******09".
    """
    if len(document) <= 5:
        return "****"
    return f"{document[:3]}{'*' * (len(document) - 5)}{document[-2:]}"


def _money(amount: Decimal) -> str:
    return f"{amount:.2f}"


def _parse_enum(parser, value: Optional[str], label: str):
    if value is None or not value.strip():
        return None
    parsed = parser(value)
    if parsed is None:
        raise HTTPException(status_code=400, detail=f"{label} desconhecido: {value}")
    return parsed


def offering_to_out(offering: EventOffering, occupancy: Optional[EventOccupancy] = None) -> EventOut:
    taken = occupancy.current_registrations if occupancy else 0
    return EventOut(
        id=offering.id,
        title=offering.title,
        style=offering.style.display_name,
        modality=offering.modality.display_name,
        category=offering.category_label,
        min_age=offering.min_age,
        max_age=offering.max_age,
        price=_money(offering.unit_price),
        price_display=format_brl(offering.unit_price),
        price_note=offering.modality.price_note,
        time_limit=offering.time_limit,
        venue=offering.venue,
        start_date=offering.start_date.isoformat(),
        end_date=offering.end_date.isoformat(),
        available=offering.available,
        capacity=offering.capacity,
        current_registrations=taken,
        vacancies=max(0, offering.capacity - taken),
        description=offering.description,
        notes=list(offering.notes),
    )


def create_app(config: Optional[AppConfig] = None) -> FastAPI:
    """
    Cria a aplicação FastAPI e injeta dependências principais (config + engine).
    """
    config = config or AppConfig.load_from_env()
    engine = RegistrationEngine(config=config)

    app = FastAPI(
        title="Festival Registration API",
        version="0.1.0",
        description="Catálogo, seleção, preço e validação das inscrições do festival.",
    )
    app.add_middleware(RequestIDMiddleware)

    @app.exception_handler(UnknownEventError)
    async def unknown_event_handler(request: Request, exc: UnknownEventError) -> JSONResponse:
        logger.warning(f"Evento desconhecido: event_id={exc.event_id}, path={request.url.path}")
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    def session_to_out(session: RegistrationSession) -> SessionOut:
        view = engine.describe_session(session)
        summary = view["summary"]
        return SessionOut(
            session_id=view["session_id"],
            step=view["step"],
            items=[
                SelectedItemOut(
                    event_id=item["event_id"],
                    title=item["title"],
                    participants=item["participants"],
                    required_names=item["required_names"],
                    price=_money(item["price"]),
                    price_display=format_brl(item["price"]),
                )
                for item in view["items"]
            ],
            total=_money(view["total"]),
            total_display=format_brl(view["total"]),
            summary=SummaryOut(
                count=summary.count,
                unique_styles=summary.unique_styles,
                unique_modalities=summary.unique_modalities,
            ),
            candidate=CandidateRequest(**view["candidate"].to_dict()),
            errors=view["errors"],
            registration_id=view["registration_id"],
        )

    @app.get("/health")
    def health_check():
        """
        Endpoint de health check para monitoramento e Docker healthchecks.
        """
        redis_ok = True
        if config.redis_url and config.redis_url.strip():
            try:
                from redis import Redis
                Redis.from_url(config.redis_url).ping()
            except Exception as e:
                logger.warning(f"Redis health check falhou: {e}")
                redis_ok = False

        db_ok = True
        try:
            from sqlalchemy import text
            from ..storage.database import create_engine_from_url
            db_engine = create_engine_from_url(config.database_url)
            with db_engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except Exception as e:
            logger.warning(f"Database health check falhou: {e}")
            db_ok = False

        return {
            "status": "healthy" if (redis_ok and db_ok) else "degraded",
            "redis": "ok" if redis_ok else "error",
            "database": "ok" if db_ok else "error",
            "offerings": len(engine.catalog),
        }

    @app.get("/events", response_model=List[EventOut])
    def list_events(
        style: Optional[str] = None,
        modality: Optional[str] = None,
        category: Optional[str] = None,
        age: Optional[int] = None,
        max_price: Optional[Decimal] = None,
        q: Optional[str] = None,
    ) -> List[EventOut]:
        offerings = engine.catalog.filter(
            style=_parse_enum(DanceStyle.from_name, style, "Estilo"),
            modality=_parse_enum(Modality.from_name, modality, "Modalidade"),
            category=_parse_enum(AgeCategory.from_name, category, "Categoria"),
            dancer_age=age,
            max_price=max_price,
            text=q,
        )
        occupancy = engine.registrations.occupancy()
        return [offering_to_out(o, occupancy.get(o.id)) for o in offerings]

    @app.get("/events/stats", response_model=CatalogStatsOut)
    def catalog_stats() -> CatalogStatsOut:
        stats = engine.catalog.statistics()
        return CatalogStatsOut(
            total_offerings=stats.total_offerings,
            unique_styles=stats.unique_styles,
            unique_modalities=stats.unique_modalities,
            unique_categories=stats.unique_categories,
            total_capacity=stats.total_capacity,
            min_price=_money(stats.min_price),
            max_price=_money(stats.max_price),
            mean_price=_money(stats.mean_price),
        )

    @app.get("/events/{event_id}", response_model=EventOut)
    def get_event(event_id: str) -> EventOut:
        offering = engine.catalog.get(event_id)
        return offering_to_out(offering, engine.registrations.occupancy().get(offering.id))

    @app.get("/sessions/{session_id}", response_model=SessionOut)
    def get_session(session_id: str) -> SessionOut:
        return session_to_out(engine.get_session(session_id))

    @app.delete("/sessions/{session_id}", response_model=SessionOut)
    def reset_session(session_id: str) -> SessionOut:
        session = engine.get_session(session_id)
        session.reset()
        engine.save_session(session)
        return session_to_out(session)

    @app.post("/sessions/{session_id}/toggle", response_model=SessionOut)
    def toggle_event(session_id: str, payload: EventSelectionRequest) -> SessionOut:
        # O PricingEngine não confere o catálogo; a borda HTTP recusa ids desconhecidos
        engine.catalog.get(payload.event_id)
        session = engine.get_session(session_id)
        engine.pricing.toggle_selection(session.selection, payload.event_id)
        engine.save_session(session)
        return session_to_out(session)

    @app.post("/sessions/{session_id}/select-only", response_model=SessionOut)
    def select_only(session_id: str, payload: EventSelectionRequest) -> SessionOut:
        engine.catalog.get(payload.event_id)
        session = engine.get_session(session_id)
        engine.pricing.select_only(session.selection, payload.event_id)
        engine.save_session(session)
        return session_to_out(session)

    @app.put("/sessions/{session_id}/participants", response_model=SessionOut)
    def set_participants(session_id: str, payload: ParticipantCountRequest) -> SessionOut:
        session = engine.get_session(session_id)
        if not session.selection.is_selected(payload.event_id):
            raise HTTPException(status_code=404, detail=f"Evento {payload.event_id} não está selecionado")
        engine.pricing.set_participant_count(session.selection, payload.event_id, payload.count)
        engine.save_session(session)
        return session_to_out(session)

    @app.put("/sessions/{session_id}/candidate", response_model=SessionOut)
    def update_candidate(session_id: str, payload: CandidateRequest) -> SessionOut:
        session = engine.get_session(session_id)
        session.candidate = RegistrationCandidate.from_dict(payload.model_dump())
        engine.save_session(session)
        return session_to_out(session)

    @app.post("/sessions/{session_id}/validate", response_model=ValidationOut)
    def validate_session(session_id: str) -> ValidationOut:
        session = engine.get_session(session_id)
        result = engine.registrations.validate_session(session)
        return ValidationOut(**result.to_dict())

    @app.post("/sessions/{session_id}/step", response_model=SessionOut)
    def change_step(session_id: str, payload: StepRequest) -> SessionOut:
        session = engine.get_session(session_id)
        result = engine.registrations.advance(session, payload.step)
        engine.save_session(session)
        if not result.moved:
            raise HTTPException(
                status_code=422,
                detail={"errors": result.errors, "warnings": result.warnings},
            )
        return session_to_out(session)

    @app.post("/sessions/{session_id}/submit", response_model=SubmissionOut, status_code=201)
    def submit_registration(session_id: str, request: Request) -> SubmissionOut:
        request_id = getattr(request.state, "request_id", "unknown")
        session = engine.get_session(session_id)

        start_time = time.time()
        try:
            result = engine.registrations.submit(session)
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.error(
                f"Erro ao processar inscrição: request_id={request_id}, "
                f"session_id={session_id}, duration_ms={duration_ms:.2f}, "
                f"error={type(e).__name__}: {e}",
                exc_info=True,
            )
            raise HTTPException(
                status_code=500,
                detail="Erro ao processar inscrição. Tente novamente mais tarde.",
            )
        finally:
            engine.save_session(session)

        logger.info(
            f"Envio de inscrição: request_id={request_id}, session_id={session_id}, "
            f"document={mask_document(session.candidate.document)}, outcome={result.outcome.value}"
        )

        if result.outcome == SubmissionOutcome.INVALID:
            raise HTTPException(
                status_code=422,
                detail={"errors": result.errors, "warnings": result.warnings},
            )
        if result.outcome in (SubmissionOutcome.CONFLICT, SubmissionOutcome.SOLD_OUT):
            raise HTTPException(
                status_code=409,
                detail={
                    "errors": result.errors,
                    "conflicts": [asdict(c) for c in result.conflicts],
                },
            )

        return SubmissionOut(
            registration_id=result.registration_id,
            total_amount=_money(result.total_amount),
            total_display=format_brl(result.total_amount),
            warnings=result.warnings,
        )

    @app.post("/registrations/validate", response_model=DuplicateCheckOut)
    def check_duplicates(payload: DuplicateCheckRequest) -> DuplicateCheckOut:
        conflicts = engine.registrations.check_conflicts(payload.document, payload.email)
        return DuplicateCheckOut(
            is_valid=not conflicts,
            conflicts=[ConflictOut(type=c.type, value=c.value, status=c.status) for c in conflicts],
        )

    def registration_to_out(registration) -> RegistrationOut:
        return RegistrationOut(
            id=registration.id,
            name=registration.name,
            document=registration.document,
            document_display=format_cpf(registration.document),
            email=registration.email,
            phone=registration.phone,
            phone_display=normalize_phone(registration.phone) or registration.phone,
            selected_events=list(registration.selected_events),
            participant_counts=dict(registration.participant_counts),
            total_amount=_money(Decimal(registration.total_amount)),
            status=registration.status,
            created_at=registration.created_at.isoformat(),
        )

    @app.post("/registrations/{registration_id}/confirm-payment", response_model=RegistrationOut)
    def confirm_payment(
        registration_id: int,
        x_api_key: Optional[str] = Header(default=None, alias="X-API-KEY"),
    ) -> RegistrationOut:
        """
        Sinal de pagamento aprovado vindo da camada de pagamento.
        """
        require_api_key(config, x_api_key)
        try:
            registration = engine.registrations.confirm_payment(registration_id)
        except RegistrationStateError as e:
            raise HTTPException(status_code=409, detail=str(e))
        if registration is None:
            raise HTTPException(status_code=404, detail="Inscrição não encontrada")
        return registration_to_out(registration)

    @app.post("/registrations/{registration_id}/cancel", response_model=RegistrationOut)
    def cancel_registration(
        registration_id: int,
        x_api_key: Optional[str] = Header(default=None, alias="X-API-KEY"),
    ) -> RegistrationOut:
        require_api_key(config, x_api_key)
        registration = engine.registrations.cancel(registration_id)
        if registration is None:
            raise HTTPException(status_code=404, detail="Inscrição não encontrada")
        return registration_to_out(registration)

    @app.get("/registrations", response_model=List[RegistrationOut])
    def list_registrations(
        status: Optional[str] = None,
        x_api_key: Optional[str] = Header(default=None, alias="X-API-KEY"),
    ) -> List[RegistrationOut]:
        require_api_key(config, x_api_key)
        return [registration_to_out(r) for r in engine.registrations.list_registrations(status=status)]

    @app.get("/admin/dashboard", response_model=DashboardOut)
    def admin_dashboard(
        x_api_key: Optional[str] = Header(default=None, alias="X-API-KEY"),
    ) -> DashboardOut:
        """
        Painel administrativo: ocupação por evento, receita confirmada
        e inscrições recentes.
        """
        require_api_key(config, x_api_key)
        report = engine.registrations.dashboard()
        return DashboardOut(
            stats=DashboardStatsOut(
                total_events=report.total_events,
                confirmed_registrations=report.confirmed_registrations,
                pending_registrations=report.pending_registrations,
                cancelled_registrations=report.cancelled_registrations,
                confirmed_revenue=_money(report.confirmed_revenue),
                confirmed_revenue_display=format_brl(report.confirmed_revenue),
            ),
            events=[EventOccupancyOut(**asdict(e)) for e in report.events],
            recent_registrations=[registration_to_out(r) for r in report.recent_registrations],
        )

    return app


app = create_app()
