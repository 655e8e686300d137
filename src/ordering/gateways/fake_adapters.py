"""Configurable in-memory stand-ins for the sibling services.

Used in development (``COLLABORATORS=fake``) and throughout the test suite.
Every fake records the calls it receives in ``calls`` and can be told to
fail, so tests can assert both on outcomes and on the side effects that
reached the outside world.
"""

from datetime import UTC, datetime, timedelta

from ordering.errors import Conflict, UpstreamUnavailable
from ordering.gateways.port import (
    ClientPort,
    ClientProfile,
    EmailPort,
    InventoryPort,
    ProductInfo,
    PromotionPort,
    PromotionRule,
    ReceiptGenerator,
    TableInfo,
    TablePort,
    TableStatus,
)


class FakeInventory(InventoryPort):
    def __init__(self) -> None:
        self.products: dict[str, ProductInfo] = {}
        self.available: bool = True
        self.fail_reduce_for: set[str] = set()
        self.on_lookup = None
        self.on_reduce = None
        self.calls: list[dict] = []

    def add_product(self, product_id, price, stock=100, active=True, name="") -> ProductInfo:
        product = ProductInfo(product_id=str(product_id), price=price, stock=stock, active=active, name=name)
        self.products[str(product_id)] = product
        return product

    def configure(self, available: bool = True, fail_reduce_for=()) -> None:
        self.available = available
        self.fail_reduce_for = {str(pid) for pid in fail_reduce_for}

    def get_product(self, product_id, token=None):
        self.calls.append({"method": "get_product", "product_id": str(product_id), "token": token})
        if self.on_lookup is not None:
            self.on_lookup(product_id)
        if not self.available:
            raise UpstreamUnavailable("The inventory service is unavailable")
        return self.products.get(str(product_id))

    def reduce_stock(self, product_id, quantity, token=None):
        self.calls.append({"method": "reduce_stock", "product_id": str(product_id), "quantity": quantity})
        if self.on_reduce is not None:
            self.on_reduce(product_id, quantity)
        if not self.available:
            raise UpstreamUnavailable("The inventory service is unavailable")
        if str(product_id) in self.fail_reduce_for:
            raise Conflict(f"Insufficient stock for product {product_id}")

        product = self.products[str(product_id)]
        self.products[str(product_id)] = ProductInfo(
            product_id=product.product_id,
            price=product.price,
            stock=product.stock - quantity,
            active=product.active,
            name=product.name,
        )

    @property
    def reductions(self) -> list[dict]:
        return [call for call in self.calls if call["method"] == "reduce_stock"]


class FakePromotions(PromotionPort):
    def __init__(self) -> None:
        self.rules: dict[str, list[PromotionRule]] = {}
        self.available: bool = True
        self.calls: list[dict] = []

    def add_rule(
        self,
        product_id,
        percent_off=None,
        fixed_price=None,
        minimum_quantity=1,
        active=True,
        start_date=None,
        end_date=None,
        promotion_id=None,
    ) -> PromotionRule:
        now = datetime.now(UTC)
        rules = self.rules.setdefault(str(product_id), [])
        rule = PromotionRule(
            promotion_id=promotion_id or f"promo-{len(rules) + 1}",
            active=active,
            start_date=start_date or now - timedelta(days=1),
            end_date=end_date or now + timedelta(days=1),
            minimum_quantity=minimum_quantity,
            fixed_price=fixed_price,
            percent_off=percent_off,
        )
        rules.append(rule)
        return rule

    def get_promotions_for_product(self, product_id, token=None):
        self.calls.append({"method": "get_promotions_for_product", "product_id": str(product_id)})
        if not self.available:
            raise UpstreamUnavailable("The promotions service is unavailable")
        return list(self.rules.get(str(product_id), []))


class FakeTables(TablePort):
    def __init__(self) -> None:
        self.tables: dict[str, TableInfo] = {}
        self.fail_lookups: bool = False
        self.fail_updates: bool = False
        self.calls: list[dict] = []

    def add_table(self, table_id, number, status=TableStatus.AVAILABLE) -> TableInfo:
        table = TableInfo(table_id=str(table_id), number=number, status=status.value)
        self.tables[str(table_id)] = table
        return table

    def list_tables(self, token=None):
        self.calls.append({"method": "list_tables"})
        if self.fail_lookups:
            raise UpstreamUnavailable("The reservations service returned a malformed table list")
        return list(self.tables.values())

    def update_table_status(self, table_id, status, token=None):
        self.calls.append({"method": "update_table_status", "table_id": str(table_id), "status": status.value})
        if self.fail_updates:
            raise UpstreamUnavailable("The reservations service is unavailable")
        table = self.tables[str(table_id)]
        self.tables[str(table_id)] = TableInfo(table_id=table.table_id, number=table.number, status=status.value)


class FakeClients(ClientPort):
    def __init__(self) -> None:
        self.clients: dict[str, ClientProfile] = {}
        self.calls: list[dict] = []

    def add_client(self, client_id, name="Test Client", email="client@example.com", address=None) -> ClientProfile:
        profile = ClientProfile(client_id=str(client_id), name=name, email=email, address=address)
        self.clients[str(client_id)] = profile
        return profile

    def get_client(self, client_id, token=None):
        self.calls.append({"method": "get_client", "client_id": str(client_id)})
        return self.clients.get(str(client_id))


class FakeEmail(EmailPort):
    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.sent: list[dict] = []

    def configure(self, should_succeed: bool) -> None:
        self.should_succeed = should_succeed

    def send_order_confirmation(self, payload, token=None):
        if not self.should_succeed:
            raise UpstreamUnavailable("The email service is unavailable")
        self.sent.append(payload)


class FakeReceipts(ReceiptGenerator):
    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.generated: list[dict] = []

    def configure(self, should_succeed: bool) -> None:
        self.should_succeed = should_succeed

    def generate(self, order, lines, table_name=None):
        if not self.should_succeed:
            raise OSError("Receipt storage is not writable")
        path = f"recibos/recibo_pedido_{order.id}.txt"
        self.generated.append(
            {
                "order_id": str(order.id),
                "total": order.total,
                "lines": len(lines),
                "table_name": table_name,
                "path": path,
            }
        )
        return path
