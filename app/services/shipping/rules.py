"""
Shipping rules engine.

Applies the stored business rules to a list of priced shipping options:

- Surcharge rules raise each option's price (percentage or fixed amount),
  cumulatively in ascending priority order.
- The global production lead time is added once to every option's delivery
  estimate.
- Free shipping is granted to at most one option: the cheapest one after
  surcharges, by the first matching free-shipping rule.

Everything here is synchronous and side-effect free. The caller loads the
active rules (ordered by priority) and the production-days setting, and
decides what to do with the applied-rule audit.
"""

import logging
from typing import Iterable, List, Optional, Sequence, Set

from app.core.enums import ShippingRuleType, ConditionType, AdjustmentType
from app.schemas.shipping import (
    AppliedRule,
    RuleConditions,
    ShippingOption,
    ShippingRuleRead,
    ShippingRulesResult,
)

logger = logging.getLogger(__name__)

FREE_PRICE = "0.00"


def format_price(value: float) -> str:
    return f"{value:.2f}"


def _rule_methods(rule: ShippingRuleRead, conditions: RuleConditions) -> Set[int]:
    """Union of the two places a modality filter can live"""
    methods = set(conditions.shipping_methods or [])
    methods.update(rule.shipping_methods or [])
    return methods


def _legacy_rule_applies(
    rule: ShippingRuleRead,
    conditions: RuleConditions,
    order_value: float,
    destination_state: Optional[str],
    shipping_method_id: Optional[int],
) -> bool:
    """Single-predicate behaviour for rules saved before condition bags were combined"""
    condition_type = rule.condition_type

    if condition_type == ConditionType.MIN_VALUE:
        if not conditions.min_value:
            return False
        return order_value >= conditions.min_value

    if condition_type == ConditionType.STATES:
        if not conditions.states or not destination_state:
            return False
        return destination_state.upper() in conditions.states

    if condition_type == ConditionType.SHIPPING_METHODS:
        if not shipping_method_id:
            return False
        if not rule.shipping_methods:
            return True
        return shipping_method_id in rule.shipping_methods

    return True


def rule_applies(
    rule: ShippingRuleRead,
    order_value: float,
    destination_state: Optional[str] = None,
    shipping_method_id: Optional[int] = None,
) -> bool:
    """
    Check whether a rule's conditions hold for an order / option.

    Every condition present in the rule's condition bag must hold (AND). When
    the bag carries none of min_value, states or shipping methods, the rule's
    condition_type decides on its own.

    Args:
        rule: The rule to evaluate
        order_value: Order subtotal before shipping
        destination_state: Two-letter state code, any case
        shipping_method_id: Id of the shipping option being priced

    Returns:
        True if the rule applies
    """
    conditions = rule.condition_value
    if rule.condition_type == ConditionType.ALL or conditions is None or conditions.is_empty:
        return True

    methods = _rule_methods(rule, conditions)
    has_specific_conditions = (
        conditions.has_min_value
        or bool(conditions.states)
        or bool(methods)
    )

    if not has_specific_conditions:
        return _legacy_rule_applies(rule, conditions, order_value, destination_state, shipping_method_id)

    if conditions.min_value is not None and order_value < conditions.min_value:
        return False

    if conditions.states:
        if not destination_state:
            return False
        if destination_state.upper() not in conditions.states:
            return False

    if methods:
        if not shipping_method_id:
            return False
        if shipping_method_id not in methods:
            return False

    return True


def compute_surcharge(price: float, rule: ShippingRuleRead) -> float:
    """Amount a surcharge rule adds to a price (0 when the rule has no value)"""
    if rule.discount_type is None or rule.discount_value is None:
        return 0.0

    if rule.discount_type == AdjustmentType.PERCENTAGE:
        return price * rule.discount_value / 100
    if rule.discount_type == AdjustmentType.FIXED:
        return rule.discount_value
    return 0.0


def _add_days(option: ShippingOption, days: int) -> None:
    if option.delivery_time is not None:
        option.delivery_time += days
    if option.delivery_range is not None:
        option.delivery_range.min += days
        option.delivery_range.max += days


def add_production_days_to_options(
    options: Iterable[ShippingOption],
    production_days: int,
) -> List[ShippingOption]:
    """Return copies of the options with the production lead time added"""
    copies = [option.model_copy(deep=True) for option in options]
    if production_days > 0:
        for option in copies:
            _add_days(option, production_days)
    return copies


def apply_shipping_rules(
    shipping_options: Sequence[ShippingOption],
    order_value: float,
    destination_state: Optional[str] = None,
    *,
    rules: Sequence[ShippingRuleRead],
    production_days: int = 0,
) -> ShippingRulesResult:
    """
    Apply all shipping rules to the options of one quote.

    Args:
        shipping_options: Options returned by the rate provider
        order_value: Order subtotal before shipping
        destination_state: Two-letter state code, or None when unknown
        rules: Active rules, sorted by ascending priority
        production_days: Global production lead time in days

    Returns:
        ShippingRulesResult with the repriced options (new objects, the inputs
        are left untouched), the applied-rule audit and the days added
    """
    applied_rules: List[AppliedRule] = []
    modified_options: List[ShippingOption] = []

    # First pass: surcharges and lead time, per option
    for option in shipping_options:
        base_price = option.price_value
        final_price = base_price

        for rule in rules:
            if rule.rule_type != ShippingRuleType.SURCHARGE:
                continue
            if not rule_applies(rule, order_value, destination_state, option.id):
                continue

            surcharge = compute_surcharge(final_price, rule)
            if surcharge == 0:
                continue

            final_price += surcharge
            applied_rules.append(AppliedRule(
                rule_id=rule.id,
                rule_type=rule.rule_type,
                original_price=base_price,
                final_price=final_price,
                surcharge=surcharge,
            ))

        modified = option.model_copy(deep=True)
        modified.price = format_price(final_price)
        if production_days > 0:
            _add_days(modified, production_days)
        modified_options.append(modified)

    # Second pass: free shipping on the cheapest option only
    if modified_options:
        cheapest = modified_options[0]
        for candidate in modified_options[1:]:
            if candidate.price_value < cheapest.price_value:
                cheapest = candidate

        for rule in rules:
            if rule.rule_type != ShippingRuleType.FREE_SHIPPING:
                continue
            if not rule_applies(rule, order_value, destination_state, cheapest.id):
                continue

            cheapest_price = cheapest.price_value
            cheapest.original_price = cheapest_price
            cheapest.price = FREE_PRICE
            applied_rules.append(AppliedRule(
                rule_id=rule.id,
                rule_type=rule.rule_type,
                original_price=cheapest_price,
                final_price=0.0,
            ))
            logger.debug(f"Free shipping rule {rule.id} applied to option {cheapest.id} ({cheapest_price:.2f})")
            break

    return ShippingRulesResult(
        options=modified_options,
        applied_rules=applied_rules,
        production_days_added=production_days,
    )


def has_free_shipping(
    rules: Sequence[ShippingRuleRead],
    order_value: float,
    destination_state: Optional[str] = None,
) -> bool:
    """Whether any free-shipping rule matches the order, regardless of option"""
    return any(
        rule.rule_type == ShippingRuleType.FREE_SHIPPING
        and rule_applies(rule, order_value, destination_state)
        for rule in rules
    )


def calculate_shipping_surcharge(
    price: float,
    rules: Sequence[ShippingRuleRead],
    order_value: float,
    destination_state: Optional[str] = None,
    shipping_method_id: Optional[int] = None,
) -> float:
    """Total surcharge the matching surcharge rules add to a single price"""
    total = 0.0
    for rule in rules:
        if rule.rule_type != ShippingRuleType.SURCHARGE:
            continue
        if rule_applies(rule, order_value, destination_state, shipping_method_id):
            total += compute_surcharge(price + total, rule)
    return total


def find_free_shipping_rule(applied_rules: Iterable[AppliedRule]) -> Optional[AppliedRule]:
    for applied in applied_rules:
        if applied.rule_type == ShippingRuleType.FREE_SHIPPING and applied.applied:
            return applied
    return None
