import logging
import smtplib
import ssl
from email.message import EmailMessage
from smtplib import SMTPException, SMTPServerDisconnected
from typing import List
from ..config import AppConfig
from ..domain.regulation import FESTIVAL_END, FESTIVAL_NAME, FESTIVAL_START, FESTIVAL_VENUE

logger = logging.getLogger(__name__)


class EmailService:
    """
    Serviço para envio de e-mails.
    Em desenvolvimento, apenas loga no console.
    """

    def __init__(self, config: AppConfig) -> None:
        self._config = config

    def build_confirmation_message(
        self,
        to_email: str,
        full_name: str,
        event_titles: List[str],
        total_display: str,
        registration_id: int,
    ) -> EmailMessage:
        events_block = "\n".join(f"- {title}" for title in event_titles)
        body = f"""Olá, {full_name}!

Sua inscrição nº {registration_id} no {FESTIVAL_NAME} foi confirmada!

Modalidades inscritas:
{events_block}

Valor total: {total_display}

Local: {FESTIVAL_VENUE}
Datas: {FESTIVAL_START:%d/%m/%Y} a {FESTIVAL_END:%d/%m/%Y}

Em breve você receberá o cronograma de apresentações.

Equipe {FESTIVAL_NAME}
"""
        msg = EmailMessage()
        msg["Subject"] = f"Confirmação de inscrição - {FESTIVAL_NAME}"
        msg["From"] = self._config.smtp_from
        msg["To"] = to_email
        msg.set_content(body)
        return msg

    def send_registration_confirmation(
        self,
        to_email: str,
        full_name: str,
        event_titles: List[str],
        total_display: str,
        registration_id: int,
    ) -> None:
        """
        Envia e-mail de confirmação de inscrição após o pagamento.
        """
        # ASSERT: garantir que dados básicos estão presentes
        if not to_email or not to_email.strip():
            logger.error(
                f"Tentativa de envio de e-mail sem destinatário: registration_id={registration_id}"
            )
            raise ValueError("to_email não pode estar vazio")

        if not full_name or not full_name.strip():
            logger.error(f"Tentativa de envio de e-mail sem nome: to_email={to_email}")
            raise ValueError("full_name não pode estar vazio")

        msg = self.build_confirmation_message(
            to_email, full_name, event_titles, total_display, registration_id
        )
        logger.debug(f"Montando e-mail de confirmação: to={to_email}, subject={msg['Subject']}")

        if self._config.smtp_host == "dev-log":
            # Modo desenvolvimento: apenas logar
            logger.warning(
                f"MODO DEV: E-mail NÃO foi enviado (apenas simulado). "
                f"Para enviar e-mails reais, configure SMTP_HOST no .env. "
                f"Destinatário: {to_email}"
            )
            logger.info(f"E-mail de confirmação (FAKE):\n{msg.get_content()}")
            return

        try:
            logger.info(
                f"Iniciando conexão SMTP: host={self._config.smtp_host}, "
                f"port={self._config.smtp_port}, from={self._config.smtp_from}"
            )
            self._send(msg)
            logger.info(
                f"E-mail enviado com sucesso via SMTP: to={to_email}, "
                f"host={self._config.smtp_host}, port={self._config.smtp_port}"
            )
        except SMTPServerDisconnected:
            logger.error(
                f"Erro SMTP: Conexão fechada durante autenticação. "
                f"Verifique: host={self._config.smtp_host}, port={self._config.smtp_port}, "
                f"user={self._config.smtp_user}"
            )
            raise
        except SMTPException as e:
            logger.error(
                f"Erro SMTP ao enviar e-mail: to={to_email}, "
                f"error={type(e).__name__}: {e}",
                exc_info=True,
            )
            raise

    def _send(self, msg: EmailMessage) -> None:
        ssl_context = ssl.create_default_context()

        # Porta 465 usa SSL direto; as demais, STARTTLS
        if self._config.smtp_port == 465:
            server = smtplib.SMTP_SSL(
                self._config.smtp_host,
                self._config.smtp_port,
                timeout=30,
                context=ssl_context,
            )
        else:
            server = smtplib.SMTP(self._config.smtp_host, self._config.smtp_port, timeout=30)
            if self._config.smtp_user:
                server.starttls(context=ssl_context)

        try:
            if self._config.smtp_user:
                logger.debug(f"Autenticando SMTP: user={self._config.smtp_user}")
                server.login(self._config.smtp_user, self._config.smtp_password)
            server.send_message(msg)
        finally:
            server.quit()
