"""Promotional pricing.

``PriceCalculator`` resolves the price a customer pays for a product by
applying the best promotion that is active, in its date window, and whose
minimum quantity the requested quantity meets. Pricing is fail-open: if a
lookup fails the original price is returned with no discount, so pricing
never blocks a sale.

Rules:
    - A fixed promotional price takes precedence over a percentage on the
      same rule.
    - The rule with the largest discount wins; on a tie the first rule seen
      is kept.
    - Rules that would not lower the price are ignored.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import Decimal

import structlog

from ordering.errors import OrderingError
from ordering.gateways.port import InventoryPort, PromotionPort, PromotionRule
from ordering.shared.money import line_subtotal, sum_money, to_money

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class PriceQuote:
    product_id: str
    quantity: int
    original_price: float
    final_price: float
    discount_amount: float = 0.0
    discount_percent: float = 0.0
    applied_promotion: PromotionRule | None = None
    # False when the product's price itself could not be looked up
    priced: bool = True

    @property
    def has_promotion(self) -> bool:
        return self.applied_promotion is not None

    @property
    def original_subtotal(self) -> float:
        return line_subtotal(self.quantity, self.original_price)

    @property
    def final_subtotal(self) -> float:
        return line_subtotal(self.quantity, self.final_price)


@dataclass(frozen=True)
class OrderPricing:
    quotes: list[PriceQuote] = field(default_factory=list)

    @property
    def original_total(self) -> float:
        return sum_money(q.original_subtotal for q in self.quotes)

    @property
    def discounted_total(self) -> float:
        return sum_money(q.final_subtotal for q in self.quotes)

    @property
    def total_discount(self) -> float:
        return to_money(self.original_total - self.discounted_total)


def _rule_applies(rule: PromotionRule, quantity: int, now: datetime) -> bool:
    if not rule.active:
        return False
    if not (rule.start_date <= now <= rule.end_date):
        return False
    return rule.minimum_quantity <= quantity


def _discounted_price(rule: PromotionRule, original: Decimal) -> Decimal | None:
    if rule.fixed_price is not None:
        return max(Decimal(str(rule.fixed_price)), Decimal("0"))
    if rule.percent_off is not None:
        percent = min(max(Decimal(str(rule.percent_off)), Decimal("0")), Decimal("100"))
        return original * (Decimal("1") - percent / Decimal("100"))
    return None


class PriceCalculator:
    def __init__(self, inventory: InventoryPort, promotions: PromotionPort):
        self.inventory = inventory
        self.promotions = promotions

    def compute_effective_price(self, product_id, quantity: int, token: str | None = None) -> PriceQuote:
        """Price one unit of ``product_id`` when buying ``quantity`` of it."""
        try:
            product = self.inventory.get_product(product_id, token)
        except OrderingError as exc:
            logger.warning("pricing_lookup_failed", product_id=str(product_id), error=exc.message)
            return PriceQuote(str(product_id), quantity, 0.0, 0.0, priced=False)

        if product is None:
            logger.warning("pricing_product_missing", product_id=str(product_id))
            return PriceQuote(str(product_id), quantity, 0.0, 0.0, priced=False)

        original = to_money(product.price)
        try:
            rules = list(self.promotions.get_promotions_for_product(product_id, token))
        except Exception as exc:
            # Any promotion failure prices the product at its original price
            logger.warning("promotion_lookup_failed", product_id=str(product_id), error=str(exc), exc_info=True)
            return PriceQuote(str(product_id), quantity, original, original)

        return self._best_quote(str(product_id), quantity, original, rules)

    def _best_quote(self, product_id, quantity, original: float, rules) -> PriceQuote:
        now = datetime.now(UTC)
        original_dec = Decimal(str(original))

        best_rule = None
        best_price = original_dec
        for rule in rules:
            if not _rule_applies(rule, quantity, now):
                continue
            price = _discounted_price(rule, original_dec)
            if price is None:
                continue
            # Strictly lower only: the first of equally good rules stays selected
            if price < best_price:
                best_price = price
                best_rule = rule

        if best_rule is None:
            return PriceQuote(product_id, quantity, original, original)

        final = to_money(best_price)
        discount = to_money(original_dec - Decimal(str(final)))
        percent = to_money(Decimal(str(discount)) / original_dec * 100) if original_dec else 0.0
        return PriceQuote(
            product_id=product_id,
            quantity=quantity,
            original_price=original,
            final_price=final,
            discount_amount=discount,
            discount_percent=percent,
            applied_promotion=best_rule,
        )

    def compute_order_total(self, lines, token: str | None = None) -> OrderPricing:
        """Quote every line of an order; quotes keep the order of ``lines``."""
        quotes = [self.compute_effective_price(line.product_id, line.quantity, token) for line in lines]
        return OrderPricing(quotes=quotes)

    def reprice_lines(self, lines, token: str | None = None) -> float:
        """Write current promotional prices onto ``lines`` and return their new total.

        A line whose product could not be priced keeps its stored price and
        subtotal.
        """
        pricing = self.compute_order_total(lines, token)
        for line, quote in zip(lines, pricing.quotes, strict=True):
            if not quote.priced:
                logger.warning("line_kept_previous_price", line_id=str(line.id), product_id=str(line.product_id))
                continue
            line.reprice(quote.final_price)
        return sum_money(line.subtotal for line in lines)
