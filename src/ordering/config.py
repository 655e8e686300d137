"""Runtime settings for the ordering service, read from the environment."""

import os
from dataclasses import dataclass


def _split(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass(frozen=True)
class ServiceSettings:
    inventory_url: str = "http://inventory-service-app:4001/api"
    reservation_url: str = "http://reservation-service-app:4002/api"
    promotion_url: str = "http://event-service-app:4003/api"
    client_url: str = "http://client-service-app:4004/api"
    email_url: str = "http://email-service-app:4005/api"
    receipts_dir: str = "recibos"
    http_timeout: float = 10.0
    collaborators: str = "http"
    cors_origins: tuple[str, ...] = ("*",)

    @classmethod
    def from_env(cls) -> "ServiceSettings":
        defaults = cls()
        return cls(
            inventory_url=os.getenv("INVENTORY_SERVICE_URL", defaults.inventory_url),
            reservation_url=os.getenv("RESERVATION_SERVICE_URL", defaults.reservation_url),
            promotion_url=os.getenv("EVENT_SERVICE_URL", defaults.promotion_url),
            client_url=os.getenv("CLIENT_SERVICE_URL", defaults.client_url),
            email_url=os.getenv("EMAIL_SERVICE_URL", defaults.email_url),
            receipts_dir=os.getenv("RECEIPTS_DIR", defaults.receipts_dir),
            http_timeout=float(os.getenv("HTTP_TIMEOUT_SECONDS", defaults.http_timeout)),
            collaborators=os.getenv("COLLABORATORS", defaults.collaborators).lower(),
            cors_origins=tuple(_split(os.getenv("CORS_ORIGINS", "*"))) or defaults.cors_origins,
        )
