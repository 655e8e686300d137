"""Receipt documents written to the local receipts directory."""

from datetime import UTC, datetime
from pathlib import Path

import structlog

from ordering.gateways.port import ReceiptGenerator

logger = structlog.get_logger(__name__)


def render_receipt(order, lines, table_name=None) -> str:
    """Plain-text body of a receipt for ``order``."""
    placed_at = order.placed_at.strftime("%Y-%m-%d %H:%M") if order.placed_at else ""
    rows = [
        f"{line.product_id:<24} {line.quantity:>4} x {line.unit_price:>9.2f} = {line.subtotal:>10.2f}"
        for line in lines
    ]
    header = [
        f"Receipt for order #{order.id}",
        f"Date: {placed_at}",
        f"Channel: {order.channel}",
    ]
    if table_name:
        header.append(f"Table: {table_name}")
    if order.delivery_address:
        header.append(f"Deliver to: {order.delivery_address}")

    return "\n".join(
        header
        + ["", *rows, "", f"{'TOTAL':<44} {order.total:>10.2f}", "", "Thank you for your purchase!"]
    )


class FileReceiptGenerator(ReceiptGenerator):
    def __init__(self, receipts_dir: str = "recibos") -> None:
        self.receipts_dir = Path(receipts_dir)

    def generate(self, order, lines, table_name=None):
        self.receipts_dir.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now(UTC).strftime("%Y%m%d%H%M%S%f")
        path = self.receipts_dir / f"recibo_pedido_{order.id}_{stamp}.txt"
        path.write_text(render_receipt(order, lines, table_name), encoding="utf-8")

        logger.info("receipt_generated", order_id=str(order.id), path=str(path))
        return str(path)
