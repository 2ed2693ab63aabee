"""
CRUD over the shipping_rules table.

Rules are loaded fresh on every quote; nothing here is cached. JSON columns
are parsed into RuleConditions through the ShippingRuleRead schema so the
engine always works with typed, validated rules.
"""

import logging
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import ShippingRuleType
from app.core.exceptions import DatabaseError, ShippingRuleNotFoundError, ShippingRuleValidationError
from app.core.utils import model_to_schema, models_to_schemas
from app.models.shipping import ShippingRule
from app.schemas.shipping import ShippingRuleCreate, ShippingRuleRead, ShippingRuleUpdate

logger = logging.getLogger(__name__)


def _rule_columns(data: Union[ShippingRuleCreate, ShippingRuleUpdate], partial: bool) -> Dict[str, Any]:
    """Column values for a create/update payload, keeping condition-bag key presence intact"""
    values = data.model_dump(mode="json", exclude_unset=partial, exclude={"condition_value"})
    if not partial or "condition_value" in data.model_fields_set:
        conditions = data.condition_value
        values["condition_value"] = (
            conditions.model_dump(mode="json", exclude_unset=True) if conditions is not None else None
        )
    return values


def validate_rule_values(
    rule_type: Optional[str],
    discount_type: Optional[str],
    discount_value: Optional[float],
) -> None:
    """
    Raises:
        ShippingRuleValidationError: For disabled rule types or incomplete surcharges
    """
    if rule_type is not None and not ShippingRuleType(rule_type).is_enabled:
        raise ShippingRuleValidationError(
            "Shipping discount rules are disabled; use free_shipping or surcharge rules"
        )
    if rule_type == ShippingRuleType.SURCHARGE.value and (discount_type is None or discount_value is None):
        raise ShippingRuleValidationError("Surcharge rules need both discount_type and discount_value")


class ShippingRuleService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _get_rule_model(self, rule_id: int) -> ShippingRule:
        result = await self.db.execute(select(ShippingRule).where(ShippingRule.id == rule_id))
        rule = result.scalar_one_or_none()
        if rule is None:
            raise ShippingRuleNotFoundError(f"Shipping rule with ID {rule_id} not found")
        return rule

    async def list_rules(self) -> List[ShippingRuleRead]:
        """All rules, active or not, in evaluation order."""
        stmt = select(ShippingRule).order_by(ShippingRule.priority.asc(), ShippingRule.created_at.asc())
        result = await self.db.execute(stmt)
        return await models_to_schemas(result.scalars().all(), ShippingRuleRead)

    async def get_active_rules(self) -> List[ShippingRuleRead]:
        """
        Active rules ordered by priority, then creation time.

        Rows whose stored JSON no longer validates are skipped with a warning
        rather than failing the whole quote.

        Raises:
            DatabaseError: If the rules cannot be loaded
        """
        stmt = (
            select(ShippingRule)
            .where(ShippingRule.active.is_(True))
            .order_by(ShippingRule.priority.asc(), ShippingRule.created_at.asc())
        )
        try:
            result = await self.db.execute(stmt)
        except SQLAlchemyError as e:
            logger.error(f"Error loading shipping rules: {str(e)}")
            raise DatabaseError(f"Failed to load shipping rules: {str(e)}") from e

        rules = []
        for row in result.scalars().all():
            try:
                rules.append(await model_to_schema(row, ShippingRuleRead))
            except ValidationError as e:
                logger.warning(f"Skipping shipping rule {row.id}: invalid stored values ({e.error_count()} errors)")
        return rules

    async def get_rule(self, rule_id: int) -> ShippingRuleRead:
        """
        Raises:
            ShippingRuleNotFoundError: If the rule does not exist
        """
        rule = await self._get_rule_model(rule_id)
        return await model_to_schema(rule, ShippingRuleRead)

    async def create_rule(self, rule_data: ShippingRuleCreate) -> ShippingRuleRead:
        """
        Create a rule.

        Raises:
            ShippingRuleValidationError: If the rule type is disabled or a surcharge is incomplete
            DatabaseError: If the insert fails
        """
        values = _rule_columns(rule_data, partial=False)
        validate_rule_values(values["rule_type"], values["discount_type"], values["discount_value"])

        try:
            rule = ShippingRule(**values)
            self.db.add(rule)
            await self.db.commit()
            await self.db.refresh(rule)
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise DatabaseError(f"Failed to create shipping rule: {str(e)}") from e

        logger.info(f"Created shipping rule {rule.id} ({rule.rule_type}, priority {rule.priority})")
        return await model_to_schema(rule, ShippingRuleRead)

    async def update_rule(self, rule_id: int, rule_data: ShippingRuleUpdate) -> ShippingRuleRead:
        """
        Apply the fields that were sent to an existing rule.

        Raises:
            ShippingRuleNotFoundError: If the rule does not exist
            ShippingRuleValidationError: If the result would be a disabled or incomplete rule
        """
        rule = await self._get_rule_model(rule_id)
        values = _rule_columns(rule_data, partial=True)

        validate_rule_values(
            values.get("rule_type", rule.rule_type),
            values.get("discount_type", rule.discount_type),
            values.get("discount_value", rule.discount_value),
        )

        for key, value in values.items():
            setattr(rule, key, value)

        try:
            await self.db.commit()
            await self.db.refresh(rule)
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise DatabaseError(f"Failed to update shipping rule {rule_id}: {str(e)}") from e

        logger.info(f"Updated shipping rule {rule_id}: {sorted(values)}")
        return await model_to_schema(rule, ShippingRuleRead)

    async def delete_rule(self, rule_id: int) -> bool:
        """
        Raises:
            ShippingRuleNotFoundError: If the rule does not exist
            DatabaseError: If the delete fails
        """
        rule = await self._get_rule_model(rule_id)

        try:
            await self.db.delete(rule)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise DatabaseError(f"Failed to delete shipping rule {rule_id}: {str(e)}") from e

        logger.info(f"Deleted shipping rule {rule_id}")
        return True
