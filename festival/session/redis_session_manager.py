"""
Gerenciador de sessões usando Redis como backend.
Armazena RegistrationSession serializada em JSON com TTL configurável.
"""
import logging
import json
from typing import Optional
from redis import Redis
from redis.exceptions import RedisError
from ..core.session_manager import RegistrationSession

logger = logging.getLogger(__name__)


class RedisSessionManager:
    """
    Gerenciador de sessões usando Redis.

    Armazena cada sessão em uma chave: session:{session_id}
    Com TTL configurável para expiração automática.
    """

    def __init__(
        self,
        redis_url: str,
        session_ttl_seconds: int = 86400,  # 1 dia padrão
        client: Optional[Redis] = None,
    ) -> None:
        """
        Inicializa o gerenciador de sessões Redis.

        Args:
            redis_url: URL de conexão Redis (ex: redis://localhost:6379/0)
            session_ttl_seconds: TTL em segundos para expiração de sessões
            client: Cliente já construído (usado nos testes)
        """
        self._redis = client or Redis.from_url(redis_url, decode_responses=False)
        self._session_ttl_seconds = session_ttl_seconds

        # Testar conexão
        try:
            self._redis.ping()
            logger.info(
                f"RedisSessionManager inicializado: redis_url={redis_url}, "
                f"ttl={session_ttl_seconds}s"
            )
        except RedisError as e:
            logger.error(f"Erro ao conectar ao Redis: {e}")
            raise

    @staticmethod
    def _key(session_id: str) -> str:
        return f"session:{session_id}"

    def _serialize_state(self, session: RegistrationSession) -> bytes:
        return json.dumps(session.to_dict(), ensure_ascii=False).encode("utf-8")

    def _deserialize_state(self, data: bytes) -> RegistrationSession:
        return RegistrationSession.from_dict(json.loads(data.decode("utf-8")))

    def get_or_create(self, session_id: str) -> RegistrationSession:
        """
        Recupera uma sessão existente ou cria uma nova.
        """
        key = self._key(session_id)

        try:
            data = self._redis.get(key)
            if data:
                session = self._deserialize_state(data)
                logger.debug(
                    f"Sessão recuperada do Redis: session_id={session_id}, "
                    f"selected={len(session.selection.selected)}"
                )
                return session

            # Criar nova sessão e salvar imediatamente com TTL
            session = RegistrationSession(session_id=session_id)
            self.save_session(session_id, session)
            logger.debug(f"Nova sessão criada no Redis: session_id={session_id}")
            return session
        except RedisError as e:
            logger.error(f"Erro ao recuperar sessão do Redis: session_id={session_id}, error={e}")
            # Em caso de erro, criar sessão temporária em memória
            # (fallback para não quebrar o fluxo)
            logger.warning(f"Usando sessão temporária em memória para session_id={session_id}")
            return RegistrationSession(session_id=session_id)

    def save_session(self, session_id: str, session: RegistrationSession) -> None:
        """
        Salva uma sessão no Redis com TTL.
        """
        key = self._key(session_id)

        try:
            self._redis.setex(key, self._session_ttl_seconds, self._serialize_state(session))
            logger.debug(
                f"Sessão salva no Redis: session_id={session_id}, "
                f"step={session.step.value}, ttl={self._session_ttl_seconds}s"
            )
        except RedisError as e:
            logger.error(f"Erro ao salvar sessão no Redis: session_id={session_id}, error={e}")
            # Não relançar erro para não quebrar o fluxo

    def clear_session(self, session_id: str) -> None:
        """
        Remove uma sessão do Redis.
        """
        try:
            self._redis.delete(self._key(session_id))
            logger.debug(f"Sessão removida do Redis: session_id={session_id}")
        except RedisError as e:
            logger.error(f"Erro ao remover sessão do Redis: session_id={session_id}, error={e}")
