"""Collaborator bundle handed to the application services.

``build_collaborators`` picks the HTTP adapters or the in-memory fakes from
the service settings; the composition root in ``app.py`` calls it once.
"""

from dataclasses import dataclass

from ordering.config import ServiceSettings
from ordering.gateways.fake_adapters import (
    FakeClients,
    FakeEmail,
    FakeInventory,
    FakePromotions,
    FakeReceipts,
    FakeTables,
)
from ordering.gateways.http_adapters import (
    HttpClients,
    HttpEmail,
    HttpInventory,
    HttpPromotions,
    HttpTables,
)
from ordering.gateways.port import (
    ClientPort,
    EmailPort,
    InventoryPort,
    PromotionPort,
    ReceiptGenerator,
    TablePort,
)
from ordering.gateways.receipt import FileReceiptGenerator


@dataclass
class Collaborators:
    inventory: InventoryPort
    promotions: PromotionPort
    tables: TablePort
    clients: ClientPort
    email: EmailPort
    receipts: ReceiptGenerator


def fake_collaborators() -> Collaborators:
    return Collaborators(
        inventory=FakeInventory(),
        promotions=FakePromotions(),
        tables=FakeTables(),
        clients=FakeClients(),
        email=FakeEmail(),
        receipts=FakeReceipts(),
    )


def build_collaborators(settings: ServiceSettings) -> Collaborators:
    if settings.collaborators == "fake":
        collaborators = fake_collaborators()
        collaborators.receipts = FileReceiptGenerator(settings.receipts_dir)
        return collaborators

    timeout = settings.http_timeout
    return Collaborators(
        inventory=HttpInventory(settings.inventory_url, timeout),
        promotions=HttpPromotions(settings.promotion_url, timeout),
        tables=HttpTables(settings.reservation_url, timeout),
        clients=HttpClients(settings.client_url, timeout),
        email=HttpEmail(settings.email_url, timeout),
        receipts=FileReceiptGenerator(settings.receipts_dir),
    )
