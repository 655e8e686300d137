"""Ports for the sibling services the ordering context depends on.

Each port has an HTTP adapter (``http_adapters``) used in deployments and a
configurable fake (``fake_adapters``) used in development and tests, so
application services never know which one they were handed.

Adapters raise ``UpstreamUnavailable`` when the sibling cannot be reached,
times out, or rejects the forwarded credentials.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class TableStatus(Enum):
    AVAILABLE = "Disponible"
    RESERVED = "Reservada"
    OCCUPIED = "Ocupada"
    OUT_OF_SERVICE = "Fuera de servicio"


@dataclass(frozen=True)
class ProductInfo:
    product_id: str
    price: float
    stock: int
    active: bool
    name: str = ""

    def can_supply(self, quantity: int) -> bool:
        return self.active and self.stock >= quantity


@dataclass(frozen=True)
class PromotionRule:
    """A product's participation in a time-bounded promotion."""

    promotion_id: str
    active: bool
    start_date: datetime
    end_date: datetime
    minimum_quantity: int = 1
    fixed_price: float | None = None
    percent_off: float | None = None
    name: str = ""


@dataclass(frozen=True)
class TableInfo:
    table_id: str
    number: int
    status: str

    @property
    def is_available(self) -> bool:
        return self.status == TableStatus.AVAILABLE.value


@dataclass(frozen=True)
class ClientProfile:
    client_id: str
    name: str
    email: str
    address: str | None = None


class InventoryPort(ABC):
    @abstractmethod
    def get_product(self, product_id: str, token: str | None = None) -> ProductInfo | None:
        """Return the product, or None when the inventory does not know it."""
        ...

    @abstractmethod
    def reduce_stock(self, product_id: str, quantity: int, token: str | None = None) -> None:
        ...


class PromotionPort(ABC):
    @abstractmethod
    def get_promotions_for_product(self, product_id: str, token: str | None = None) -> list[PromotionRule]:
        ...


class TablePort(ABC):
    @abstractmethod
    def list_tables(self, token: str | None = None) -> list[TableInfo]:
        ...

    def get_table(self, table_id: str, token: str | None = None) -> TableInfo | None:
        return next((t for t in self.list_tables(token) if str(t.table_id) == str(table_id)), None)

    @abstractmethod
    def update_table_status(self, table_id: str, status: TableStatus, token: str | None = None) -> None:
        ...


class ClientPort(ABC):
    @abstractmethod
    def get_client(self, client_id: str, token: str | None = None) -> ClientProfile | None:
        ...


class EmailPort(ABC):
    @abstractmethod
    def send_order_confirmation(self, payload: dict, token: str | None = None) -> None:
        """Dispatch the order-confirmation e-mail. Callers treat this as fire-and-forget."""
        ...


class ReceiptGenerator(ABC):
    @abstractmethod
    def generate(self, order, lines, table_name: str | None = None) -> str:
        """Render a receipt for ``order`` and return where it was stored."""
        ...
