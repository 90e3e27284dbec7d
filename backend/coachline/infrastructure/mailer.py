"""
SMTP delivery of outbound e-mail with attachments.
"""

import smtplib
from email.message import EmailMessage
from typing import Optional


class SmtpMailer:
    def __init__(
        self,
        host: str,
        port: int = 587,
        username: str = "",
        password: str = "",
        from_email: str = "",
        use_tls: bool = True,
        timeout: int = 10,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.from_email = from_email or username
        self.use_tls = use_tls
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.host and self.from_email)

    def send(
        self,
        to_email: str,
        subject: str,
        body: str,
        attachments: Optional[list[tuple[str, bytes, str]]] = None,
    ) -> tuple[bool, Optional[str]]:
        """Send one message. Attachments are (filename, content, mime type) tuples."""
        if not self.configured:
            return False, "Email not configured"

        msg = EmailMessage()
        msg["From"] = self.from_email
        msg["To"] = to_email
        msg["Subject"] = subject
        msg.set_content(body)

        for filename, content, mime_type in attachments or []:
            maintype, _, subtype = mime_type.partition("/")
            msg.add_attachment(content, maintype=maintype, subtype=subtype, filename=filename)

        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                if self.use_tls:
                    server.starttls()
                if self.username and self.password:
                    server.login(self.username, self.password)
                server.send_message(msg)
            return True, None
        except (smtplib.SMTPException, OSError) as exc:
            return False, str(exc)
