from dataclasses import dataclass
import os
import logging
from dotenv import load_dotenv

logger = logging.getLogger(__name__)


def _env_flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "y")


@dataclass(frozen=True)
class AppConfig:
    """
    Configurações principais da aplicação.

    Segue a ideia de centralizar parâmetros críticos
    para facilitar revisão, testes e mudanças futuras.
    """
    database_url: str = "sqlite:///./festival.db"
    redis_url: str = ""  # vazio = sessões em memória
    session_ttl_seconds: int = 86400
    smtp_host: str = "dev-log"
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    smtp_from: str = "inscricoes@festivaldancabsb.com.br"
    admin_api_key: str = ""
    env: str = "dev"  # "dev" ou "prod"
    strict_age_category: bool = False  # idade fora da categoria vira erro em vez de aviso

    @classmethod
    def load_from_env(cls) -> "AppConfig":
        """
        Carrega configuração a partir de variáveis de ambiente.
        Primeiro tenta carregar do arquivo .env, depois do ambiente do sistema.
        Levanta erro explícito se algo crítico faltar.
        """
        # Carrega variáveis do arquivo .env se existir
        load_dotenv()

        database_url = os.getenv("DATABASE_URL", "sqlite:///./festival.db")
        redis_url = os.getenv("REDIS_URL", "")
        session_ttl_seconds = int(os.getenv("SESSION_TTL_SECONDS", "86400"))
        smtp_host = os.getenv("SMTP_HOST", "dev-log")
        smtp_port = int(os.getenv("SMTP_PORT", "587"))
        smtp_user = os.getenv("SMTP_USER", "")
        smtp_password = os.getenv("SMTP_PASSWORD", "")
        smtp_from = os.getenv("SMTP_FROM", "inscricoes@festivaldancabsb.com.br")
        admin_api_key = os.getenv("ADMIN_API_KEY", "")

        # Carregar ambiente (dev ou prod)
        env = os.getenv("ENV", "dev").lower()
        if env not in ("dev", "prod"):
            logger.warning(f"ENV inválido '{env}', usando 'dev' como padrão")
            env = "dev"

        # Validação: em produção, ADMIN_API_KEY é obrigatório
        if env == "prod":
            if not admin_api_key.strip():
                raise RuntimeError(
                    "ENV=prod requer ADMIN_API_KEY definida. "
                    "Configure ADMIN_API_KEY no ambiente de produção."
                )
            logger.info("Modo PRODUÇÃO: ADMIN_API_KEY validada")
        elif not admin_api_key.strip():
            logger.warning(
                "MODO DEV: ADMIN_API_KEY não configurada. "
                "Endpoints administrativos aceitarão requisições sem autenticação."
            )

        strict_age_category = _env_flag("STRICT_AGE_CATEGORY")

        return cls(
            database_url=database_url,
            redis_url=redis_url,
            session_ttl_seconds=session_ttl_seconds,
            smtp_host=smtp_host,
            smtp_port=smtp_port,
            smtp_user=smtp_user,
            smtp_password=smtp_password,
            smtp_from=smtp_from,
            admin_api_key=admin_api_key,
            env=env,
            strict_age_category=strict_age_category,
        )
