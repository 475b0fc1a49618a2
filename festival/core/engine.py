import logging
from typing import Optional, Union
from .catalog import Catalog
from .registration_manager import RegistrationManager
from .selection import PricingEngine
from .session_manager import InMemorySessionManager, RegistrationSession
from ..session.redis_session_manager import RedisSessionManager
from ..config import AppConfig
from ..infra.email_service import EmailService
from ..storage.database import create_session_factory

logger = logging.getLogger(__name__)


class RegistrationEngine:
    """
    Raiz de composição do serviço de inscrições.

    - Gera o catálogo uma única vez e o repassa a quem precisa
    - Escolhe o armazenamento de sessões (Redis ou memória)
    - Monta PricingEngine e RegistrationManager
    """

    def __init__(self, config: AppConfig, catalog: Optional[Catalog] = None) -> None:
        self._config = config
        self.catalog = catalog if catalog is not None else Catalog()
        self.pricing = PricingEngine(self.catalog)

        # Escolher gerenciador de sessões: Redis se configurado, senão InMemory
        self._sessions: Union[RedisSessionManager, InMemorySessionManager]
        if config.redis_url and config.redis_url.strip():
            try:
                self._sessions = RedisSessionManager(
                    redis_url=config.redis_url,
                    session_ttl_seconds=config.session_ttl_seconds,
                )
                logger.info(f"Sessões usando Redis: url={config.redis_url}")
            except Exception as e:
                logger.error(f"Erro ao inicializar RedisSessionManager: {e}, usando InMemory como fallback")
                self._sessions = InMemorySessionManager()
        else:
            self._sessions = InMemorySessionManager()
            logger.info("Sessões usando armazenamento em memória (REDIS_URL não configurado)")

        # Extrair tipo de DB da URL (sem credenciais)
        db_type = "sqlite" if "sqlite" in config.database_url else "postgres" if "postgres" in config.database_url else "unknown"
        logger.info(
            f"RegistrationEngine inicializado: database_type={db_type}, "
            f"offerings={len(self.catalog)}, strict_age={config.strict_age_category}"
        )

        # Em produção, não criar tabelas automaticamente (usar Alembic)
        create_tables = config.env == "dev"
        self._db_session_factory = create_session_factory(config.database_url, create_tables=create_tables)
        self._email_service = EmailService(config)
        self.registrations = RegistrationManager(
            db_session_factory=self._db_session_factory,
            email_service=self._email_service,
            catalog=self.catalog,
            pricing=self.pricing,
            strict_age=config.strict_age_category,
        )

    def get_session(self, session_id: str) -> RegistrationSession:
        return self._sessions.get_or_create(session_id)

    def save_session(self, session: RegistrationSession) -> None:
        self._sessions.save_session(session.session_id, session)

    def clear_session(self, session_id: str) -> None:
        self._sessions.clear_session(session_id)

    def describe_session(self, session: RegistrationSession) -> dict:
        """
        Visão da sessão para a interface: seleção com preços, total e resumo.
        """
        selection = session.selection
        items = []
        for event_id in selection.selected:
            offering = self.catalog.get(event_id)
            items.append({
                "event_id": event_id,
                "title": offering.title,
                "participants": selection.participant_counts[event_id],
                "required_names": self.pricing.required_participant_slots(selection, event_id),
                "price": self.pricing.compute_event_price(selection, event_id),
            })

        return {
            "session_id": session.session_id,
            "step": session.step.value,
            "items": items,
            "total": self.pricing.compute_total(selection),
            "summary": self.pricing.summarize(selection),
            "candidate": session.candidate,
            "errors": list(session.errors),
            "registration_id": session.registration_id,
        }
