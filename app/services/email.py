"""
Outbound email through the external HTTP email relay.

The relay accepts ``{"email", "subject", "message", "html", "type"}`` and
answers with JSON whose ``status`` is ``"success"`` on delivery. Nothing here
raises: every failure is logged and reported as ``False``.
"""

import html
import logging
from datetime import datetime
from typing import Optional

import httpx

from app.core.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()


def render_html_template(
    title: str,
    content: str,
    button_text: Optional[str] = None,
    button_url: Optional[str] = None,
) -> str:
    """Wrap a title and plain-text body in the branded HTML layout."""
    brand = settings.email_from_name
    body = html.escape(content).replace("\n", "<br>")
    button = ""
    if button_text and button_url:
        button = f"""
                <div class="button-wrapper">
                    <a href="{html.escape(button_url, quote=True)}" class="button">{html.escape(button_text)}</a>
                </div>"""

    return f"""
<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{html.escape(title)}</title>
    <style>
        body {{ font-family: 'Inter', -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; line-height: 1.6; color: #1e293b; margin: 0; padding: 0; background-color: #f1f5f9; }}
        .wrapper {{ width: 100%; background-color: #f1f5f9; padding: 40px 0; }}
        .container {{ max-width: 600px; margin: 0 auto; background: #ffffff; border-radius: 24px; overflow: hidden; }}
        .header {{ background: #1e2b3e; padding: 40px 20px; text-align: center; border-bottom: 4px solid #44AEBC; }}
        .logo {{ font-size: 24px; font-weight: 900; color: #ffffff; text-transform: uppercase; letter-spacing: 3px; margin: 0; }}
        .content {{ padding: 48px 40px; }}
        .title {{ color: #1e2b3e; font-size: 24px; font-weight: 800; margin-bottom: 24px; text-align: center; }}
        .message-box {{ font-size: 16px; color: #475569; margin-bottom: 32px; line-height: 1.8; }}
        .button-wrapper {{ text-align: center; margin: 40px 0; }}
        .button {{ display: inline-block; padding: 18px 36px; background-color: #44AEBC; color: #ffffff !important; text-decoration: none; border-radius: 14px; font-weight: 700; }}
        .footer {{ padding: 32px; text-align: center; font-size: 12px; color: #94a3b8; }}
    </style>
</head>
<body>
    <div class="wrapper">
        <div class="container">
            <div class="header">
                <div class="logo">{html.escape(brand)}</div>
            </div>
            <div class="content">
                <h1 class="title">{html.escape(title)}</h1>
                <div class="message-box">
                    {body}
                </div>{button}
                <p>Best regards,<br><strong>The {html.escape(brand)} Team</strong></p>
            </div>
            <div class="footer">
                &copy; {datetime.utcnow().year} {html.escape(brand)}. You received this because you have an account with us.
            </div>
        </div>
    </div>
</body>
</html>
"""


class EmailService:
    """Posts rendered emails to the external relay."""

    def __init__(
        self,
        api_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.api_url = api_url if api_url is not None else settings.email_api_url
        self.timeout = timeout if timeout is not None else settings.email_api_timeout_seconds
        self.transport = transport

    async def send(self, to_email: str, subject: str, html_body: str) -> bool:
        if not self.api_url:
            logger.info("Email relay not configured, skipping email", extra={"recipient": to_email, "subject": subject})
            return False

        payload = {
            "email": to_email,
            "subject": subject,
            "message": html_body,
            "html": True,
            "type": "html",
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(self.api_url, json=payload)
        except httpx.HTTPError as exc:
            logger.error("Network error while sending email: %s", exc, extra={"recipient": to_email})
            return False

        try:
            result = response.json()
        except ValueError:
            logger.error(
                "Email relay returned non-JSON response",
                extra={"status": response.status_code, "body": response.text[:500]},
            )
            return False
        if not isinstance(result, dict):
            logger.error("Email relay returned unexpected payload", extra={"status": response.status_code})
            return False

        message = str(result.get("message") or "")
        if result.get("status") == "success" or "sent successfully" in message:
            logger.info("Email sent", extra={"recipient": to_email, "subject": subject})
            return True

        logger.error("Email relay rejected message: %s", message, extra={"recipient": to_email})
        return False

    async def send_notification_email(self, to_email: str, title: str, message: str) -> bool:
        dashboard_url = f"{settings.frontend_url.rstrip('/')}/signin"
        body = render_html_template(title, message, "View Dashboard", dashboard_url)
        return await self.send(to_email, f"New Notification: {title}", body)
