from dataclasses import dataclass

from app.core.config import Settings
from app.services.email.transport import EmailTransport, build_transport


@dataclass(frozen=True)
class EmailClient:
    """Everything a send needs, resolved once per process from settings."""

    provider: str
    transport: EmailTransport | None
    from_name: str
    from_address: str
    reply_to: str = ""
    preview_mode: bool = False
    test_recipient: str | None = None
    rate_limit: int = 100

    @property
    def is_configured(self) -> bool:
        return self.transport is not None

    @classmethod
    def from_settings(cls, settings: Settings) -> "EmailClient":
        return cls(
            provider=(settings.EMAIL_PROVIDER or "smtp").lower(),
            transport=build_transport(settings),
            from_name=settings.EMAIL_FROM_NAME,
            from_address=settings.EMAIL_FROM_ADDRESS,
            reply_to=settings.EMAIL_REPLY_TO,
            preview_mode=settings.EMAIL_PREVIEW_MODE,
            # The override never applies in production, whatever the env says.
            test_recipient=(settings.EMAIL_TEST_RECIPIENT or None) if not settings.is_production else None,
            rate_limit=settings.EMAIL_RATE_LIMIT,
        )
