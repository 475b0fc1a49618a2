import logging
import os
import uvicorn
from logging.handlers import RotatingFileHandler
from datetime import datetime

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(log_dir: str = "logs", level: int = logging.INFO) -> str:
    """
    Configuração central de logging: console + arquivo com rotação
    (máximo 10MB por arquivo, mantém 5 backups).

    Retorna o caminho do arquivo de log.
    """
    os.makedirs(log_dir, exist_ok=True)
    formatter = logging.Formatter(LOG_FORMAT, DATE_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)

    log_file = os.path.join(log_dir, "festival.log")
    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=10 * 1024 * 1024,
        backupCount=5,
        encoding="utf-8",
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)

    root_logger.addHandler(console_handler)
    root_logger.addHandler(file_handler)
    return log_file


if __name__ == "__main__":
    log_file = configure_logging()
    logging.info(f"Logging configurado. Arquivo de log: {log_file}")
    logging.info(f"Serviço de inscrições iniciado em {datetime.now().strftime(DATE_FORMAT)}")

    # Importado depois do logging para que a montagem do catálogo e do banco já seja logada
    from festival.api.http import app

    # Em produção, quem sobe isso é o process manager (systemd, docker, etc.)
    uvicorn.run(
        app,
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        log_level="info",
    )
