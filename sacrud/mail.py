"""
Mail collaborator: renders the mail templates (Jinja2) and delivers them over SMTP

Without a configured MAIL_SERVER mails are only logged.
"""
import smtplib
import ssl
from email.message import EmailMessage
from typing import Any, Mapping, Optional
from jinja2 import Environment, PackageLoader, select_autoescape
import sacrud
from .config import get_config, get_int_config


class Mailer:
    """
    :param server: smtp host, None for log-only delivery
    :param timeout: smtp socket timeout in seconds
    """

    def __init__(
        self,
        server: Optional[str] = None,
        port: int = 25,
        sender: str = "noreply@localhost",
        use_tls: bool = False,
        username: Optional[str] = None,
        password: Optional[str] = None,
        timeout: int = 10,
        environment: Optional[Environment] = None,
    ) -> None:
        self.server = server
        self.port = port
        self.sender = sender
        self.use_tls = use_tls
        self.username = username
        self.password = password
        self.timeout = timeout
        if environment is None:
            environment = Environment(loader=PackageLoader("sacrud", "templates"), autoescape=select_autoescape(["html", "xml"]))
        self.environment = environment

    @classmethod
    def from_config(cls) -> "Mailer":
        """
        :return: Mailer configured by the MAIL_* options
        """
        use_tls = get_config("MAIL_USE_TLS", False)
        if isinstance(use_tls, str):
            use_tls = use_tls.lower() in ("1", "true", "yes", "on")
        return cls(
            server=get_config("MAIL_SERVER"),
            port=get_int_config("MAIL_PORT", 25),
            sender=get_config("MAIL_SENDER", "noreply@localhost"),
            use_tls=bool(use_tls),
            username=get_config("MAIL_USERNAME"),
            password=get_config("MAIL_PASSWORD"),
            timeout=get_int_config("MAIL_TIMEOUT", 10),
        )

    def render(self, template_ref: str, variables: Optional[Mapping[str, Any]] = None) -> str:
        """
        :param template_ref: template path relative to the templates folder, e.g. "mail/password_reset.html"
        :raises jinja2.TemplateError: the template can't be loaded or rendered
        """
        template = self.environment.get_template(template_ref)
        return template.render(**(variables or {}))

    def send(self, recipient: str, subject: str, html: str) -> None:
        """
        :raises smtplib.SMTPException, OSError: delivery failed
        """
        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = self.sender
        msg["To"] = recipient
        msg.set_content(html, subtype="html")

        if not self.server:
            sacrud.log.info(f'MAIL_SERVER not configured, not sending "{subject}" to {recipient}')
            sacrud.log.debug(html)
            return

        with smtplib.SMTP(self.server, self.port, timeout=self.timeout) as server:
            if self.use_tls:
                server.starttls(context=ssl.create_default_context())
            if self.username:
                server.login(self.username, self.password)
            server.send_message(msg)
        sacrud.log.info(f'Sent "{subject}" to {recipient}')
