import logging

import httpx

from velohub.db.models import InviteRequest
from velohub.emails.renderer import invite_subject, render_invite_email

logger = logging.getLogger(__name__)


class EmailNotConfiguredError(RuntimeError):
    def __init__(self) -> None:
        super().__init__("RESEND_API_KEY not configured on server")


class EmailDeliveryError(RuntimeError):
    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class InviteNotifier:
    """Renders team invitations and hands them to the email provider.

    One POST per invitation; no retries and no delivery tracking.
    """

    def __init__(
        self,
        api_key: str | None,
        api_url: str,
        sender: str,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.api_url = api_url
        self.sender = sender
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def build_message(self, request: InviteRequest) -> dict:
        return {
            "from": self.sender,
            "to": [request.email],
            "subject": invite_subject(request),
            "html": render_invite_email(request),
        }

    async def send_invite(self, request: InviteRequest) -> dict:
        if not self.configured:
            raise EmailNotConfiguredError()

        async with httpx.AsyncClient(transport=self._transport) as client:
            resp = await client.post(
                self.api_url,
                json=self.build_message(request),
                headers={"Authorization": f"Bearer {self.api_key}"},
            )
        data = resp.json()

        if resp.is_error:
            logger.error("Email provider rejected invite: %s", data, extra={"status": resp.status_code})
            message = data.get("message") if isinstance(data, dict) else None
            raise EmailDeliveryError(message or "Failed to send email", resp.status_code)

        logger.info("Invite sent to %s for %s", request.email, request.store_name)
        return data
