"""HTTP adapters for the sibling services, built on ``requests``.

Every call carries the configured timeout and forwards the caller's bearer
token. Responses may come wrapped in the sibling's ``{"data": ...}``
envelope or bare; both are accepted.
"""

from datetime import UTC, datetime

import requests
import structlog

from ordering.errors import Conflict, UpstreamUnavailable
from ordering.gateways.port import (
    ClientPort,
    ClientProfile,
    EmailPort,
    InventoryPort,
    ProductInfo,
    PromotionPort,
    PromotionRule,
    TableInfo,
    TablePort,
    TableStatus,
)

logger = structlog.get_logger(__name__)


def _parse_datetime(value) -> datetime:
    parsed = value if isinstance(value, datetime) else datetime.fromisoformat(str(value))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def _optional_float(value) -> float | None:
    return None if value is None else float(value)


def _field(data, name: str) -> list:
    """The list under ``name`` of an object payload."""
    if not isinstance(data, dict):
        raise TypeError(f"expected an object holding '{name}', got {type(data).__name__}")
    return data.get(name) or []


class ServiceClient:
    """Thin wrapper around a ``requests.Session`` for one sibling service."""

    service = "upstream"

    def __init__(self, base_url: str, timeout: float = 10.0, session: requests.Session | None = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _headers(self, token: str | None) -> dict:
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def _request(self, method: str, path: str, token: str | None = None, **kwargs) -> requests.Response:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, headers=self._headers(token), timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            logger.warning("upstream_unreachable", service=self.service, method=method, url=url, error=str(exc))
            raise UpstreamUnavailable(f"The {self.service} service is unavailable") from exc

        if response.status_code in (401, 403):
            logger.warning("upstream_rejected_credentials", service=self.service, url=url, status=response.status_code)
            raise UpstreamUnavailable(f"The {self.service} service rejected the request credentials")
        return response

    def _fail(self, response: requests.Response):
        logger.warning("upstream_error", service=self.service, url=response.url, status=response.status_code)
        raise UpstreamUnavailable(f"The {self.service} service answered with status {response.status_code}")

    def _payload(self, response: requests.Response):
        try:
            body = response.json()
        except ValueError as exc:
            raise UpstreamUnavailable(f"The {self.service} service returned a malformed response") from exc
        if isinstance(body, dict) and "data" in body:
            return body["data"]
        return body


class HttpInventory(ServiceClient, InventoryPort):
    service = "inventory"

    def get_product(self, product_id, token=None):
        response = self._request("GET", f"/catalogo/{product_id}", token)
        if response.status_code == 404:
            return None
        if response.status_code >= 400:
            self._fail(response)

        data = self._payload(response)
        if not data:
            return None
        try:
            return ProductInfo(
                product_id=str(product_id),
                price=float(data.get("precio", 0)),
                stock=int(data.get("stockActual", 0)),
                active=bool(data.get("activo", False)),
                name=data.get("nombre", ""),
            )
        except (AttributeError, TypeError, ValueError) as exc:
            raise UpstreamUnavailable("The inventory service returned a malformed product") from exc

    def reduce_stock(self, product_id, quantity, token=None):
        response = self._request("PATCH", f"/catalogo/{product_id}/stock", token, json={"cantidad": -quantity})
        if response.status_code == 400:
            raise Conflict(f"Insufficient stock for product {product_id}")
        if response.status_code >= 400:
            self._fail(response)


class HttpPromotions(ServiceClient, PromotionPort):
    service = "promotions"

    def get_promotions_for_product(self, product_id, token=None):
        response = self._request("GET", f"/productos-promocion/producto/{product_id}/promociones", token)
        if response.status_code == 404:
            return []
        if response.status_code >= 400:
            self._fail(response)

        data = self._payload(response) or {}
        try:
            return [self._rule(entry) for entry in _field(data, "promociones")]
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            logger.warning("malformed_promotion", product_id=str(product_id), error=str(exc))
            raise UpstreamUnavailable("The promotions service returned a malformed promotion") from exc

    @staticmethod
    def _rule(entry) -> PromotionRule:
        detail = entry.get("detallePromocion") or {}
        return PromotionRule(
            promotion_id=str(entry.get("idPromocion") or detail.get("idPromocion", "")),
            active=bool(detail.get("activo", False)),
            start_date=_parse_datetime(detail["fechaInicio"]),
            end_date=_parse_datetime(detail["fechaFin"]),
            minimum_quantity=int(entry.get("cantidadMinima") or 1),
            fixed_price=_optional_float(entry.get("precioPromocional")),
            percent_off=_optional_float(entry.get("porcentajeDescuento")),
            name=detail.get("nombre", ""),
        )


class HttpTables(ServiceClient, TablePort):
    service = "reservations"

    def list_tables(self, token=None):
        response = self._request("GET", "/table", token)
        if response.status_code >= 400:
            self._fail(response)

        data = self._payload(response) or {}
        try:
            return [
                TableInfo(
                    table_id=str(table["idMesa"]),
                    number=int(table.get("numeroMesa", 0)),
                    status=table.get("estado", ""),
                )
                for table in _field(data, "mesas")
            ]
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            logger.warning("malformed_tables", error=str(exc))
            raise UpstreamUnavailable("The reservations service returned a malformed table list") from exc

    def update_table_status(self, table_id, status: TableStatus, token=None):
        response = self._request("PATCH", f"/table/{table_id}/estado", token, json={"estado": status.value})
        if response.status_code >= 400:
            self._fail(response)


class HttpClients(ServiceClient, ClientPort):
    service = "clients"

    def get_client(self, client_id, token=None):
        response = self._request("GET", f"/clientes/{client_id}", token)
        if response.status_code == 404:
            return None
        if response.status_code >= 400:
            self._fail(response)

        data = self._payload(response)
        if not data:
            return None
        try:
            return ClientProfile(
                client_id=str(client_id),
                name=data.get("nombre", ""),
                email=data.get("email", ""),
                address=data.get("direccion"),
            )
        except AttributeError as exc:
            raise UpstreamUnavailable("The clients service returned a malformed client") from exc


class HttpEmail(ServiceClient, EmailPort):
    service = "email"

    def send_order_confirmation(self, payload, token=None):
        response = self._request("POST", "/sendMail/confirmacion-pedido", token, json=payload)
        if response.status_code >= 400:
            self._fail(response)
