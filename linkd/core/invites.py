"""UnipileClient — LinkedIn connection requests via the Unipile API.

Single POST per invite, no retry. Failures come back as InviteResult(success=False)
with a message the agent can show to the user.
"""
from dataclasses import dataclass

import httpx
import structlog

DEFAULT_INVITE_MESSAGE = "I'd like to connect with you on LinkedIn."


@dataclass
class InviteResult:
    success: bool
    message: str


class UnipileClient:
    """Sends LinkedIn invitations for a profile URL."""

    def __init__(
        self,
        api_key: str | None = None,
        settings=None,
        log=None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        if settings is None:
            from config.settings import get_settings
            settings = get_settings()
        self.api_key = api_key if api_key is not None else settings.unipile_api_key
        self.base_url = settings.unipile_base_url.rstrip("/")
        self.timeout = settings.linkd_timeout_sec
        self.log = log or structlog.get_logger()
        self._transport = transport

    async def send_invite(self, linkedin_url: str, message: str | None = None) -> InviteResult:
        self.log.info("unipile.send_invite", linkedin_url=linkedin_url)

        if not self.api_key:
            self.log.error("unipile.missing_api_key")
            return InviteResult(
                success=False,
                message="Server configuration error: Unipile API key is missing.",
            )

        payload = {
            "provider": "linkedin",
            "identifier": linkedin_url,
            "message": message or DEFAULT_INVITE_MESSAGE,
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.post(
                    f"{self.base_url}/users/invitation", json=payload, headers=headers
                )
                resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            detail = _response_message(exc.response)
            self.log.error(
                "unipile.invite_failed",
                linkedin_url=linkedin_url,
                status=exc.response.status_code,
                error=detail,
            )
            return InviteResult(
                success=False,
                message=f"Failed to send LinkedIn invite to {linkedin_url}. Error: {detail}",
            )
        except httpx.HTTPError as exc:
            self.log.error("unipile.invite_failed", linkedin_url=linkedin_url, error=str(exc))
            return InviteResult(
                success=False,
                message=f"Failed to send LinkedIn invite to {linkedin_url}. Error: {exc}",
            )

        self.log.info("unipile.invite_sent", linkedin_url=linkedin_url, status=resp.status_code)
        return InviteResult(
            success=True,
            message=f"Successfully sent LinkedIn invite request to {linkedin_url}.",
        )


def _response_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text or f"HTTP {resp.status_code}"
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return f"HTTP {resp.status_code}"
