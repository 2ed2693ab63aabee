# tests/unit/services/shipping/test_rule_service.py
import pytest
from unittest.mock import MagicMock
from sqlalchemy.exc import SQLAlchemyError

from app.core.exceptions import DatabaseError, ShippingRuleNotFoundError, ShippingRuleValidationError
from app.models.shipping import ShippingRule
from app.schemas.shipping import ShippingRuleCreate, ShippingRuleRead, ShippingRuleUpdate
from app.services.shipping.rule_service import ShippingRuleService, _rule_columns, validate_rule_values


def execute_result(rows=None, one=None):
    """Mock of the Result object returned by session.execute()"""
    result = MagicMock()
    result.scalars.return_value.all.return_value = rows or []
    result.scalar_one_or_none.return_value = one
    return result


def assign_id(rule_id):
    async def _refresh(obj):
        obj.id = rule_id
    return _refresh


"""
1. Validation helpers
"""

def test_discount_rules_are_rejected():
    with pytest.raises(ShippingRuleValidationError):
        validate_rule_values("discount", "percentage", 10)


def test_surcharge_needs_type_and_value():
    with pytest.raises(ShippingRuleValidationError):
        validate_rule_values("surcharge", "fixed", None)
    with pytest.raises(ShippingRuleValidationError):
        validate_rule_values("surcharge", None, 5)

    validate_rule_values("surcharge", "fixed", 5)
    validate_rule_values("free_shipping", None, None)


def test_rule_columns_keep_condition_key_presence():
    data = ShippingRuleCreate(
        rule_type="free_shipping",
        condition_type="min_value",
        condition_value={"min_value": None},
    )

    values = _rule_columns(data, partial=False)

    assert values["condition_value"] == {"min_value": None}
    assert values["rule_type"] == "free_shipping"
    assert values["priority"] == 0


def test_rule_columns_partial_only_sent_fields():
    data = ShippingRuleUpdate(priority=5)

    assert _rule_columns(data, partial=True) == {"priority": 5}


def test_update_accepts_json_string_columns():
    data = ShippingRuleUpdate.model_validate({
        "condition_value": '{"states": ["am"], "min_value": "150"}',
        "shipping_methods": "[1, 2]",
    })

    assert _rule_columns(data, partial=True) == {
        "condition_value": {"states": ["AM"], "min_value": 150.0},
        "shipping_methods": [1, 2],
    }


"""
2. Reads
"""

@pytest.mark.asyncio
async def test_get_active_rules_parses_rows(mock_session, saved_rule_row):
    mock_session.execute.return_value = execute_result(rows=[saved_rule_row])

    rules = await ShippingRuleService(mock_session).get_active_rules()

    assert len(rules) == 1
    assert isinstance(rules[0], ShippingRuleRead)
    assert rules[0].condition_value.states == ["SP", "RJ"]
    mock_session.execute.assert_awaited_once()


@pytest.mark.asyncio
async def test_get_active_rules_skips_invalid_rows(mock_session, saved_rule_row):
    broken = ShippingRule(id=8, rule_type="surcharge", condition_type="all",
                          condition_value={"min_value": "lots"}, priority=2, active=True)
    mock_session.execute.return_value = execute_result(rows=[broken, saved_rule_row])

    rules = await ShippingRuleService(mock_session).get_active_rules()

    assert [rule.id for rule in rules] == [7]


@pytest.mark.asyncio
async def test_get_active_rules_wraps_database_errors(mock_session):
    mock_session.execute.side_effect = SQLAlchemyError("connection lost")

    with pytest.raises(DatabaseError):
        await ShippingRuleService(mock_session).get_active_rules()


@pytest.mark.asyncio
async def test_get_rule_not_found(mock_session):
    mock_session.execute.return_value = execute_result(one=None)

    with pytest.raises(ShippingRuleNotFoundError):
        await ShippingRuleService(mock_session).get_rule(99)


"""
3. Writes
"""

@pytest.mark.asyncio
async def test_create_rule(mock_session):
    mock_session.refresh.side_effect = assign_id(12)
    data = ShippingRuleCreate(
        rule_type="surcharge",
        condition_type="states",
        condition_value={"states": ["am", "pa"]},
        discount_type="percentage",
        discount_value=15,
        priority=3,
    )

    created = await ShippingRuleService(mock_session).create_rule(data)

    assert created.id == 12
    assert created.condition_value.states == ["AM", "PA"]
    saved = mock_session.add.call_args[0][0]
    assert isinstance(saved, ShippingRule)
    assert saved.condition_value == {"states": ["AM", "PA"]}
    assert saved.discount_type == "percentage"
    mock_session.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_create_discount_rule_is_rejected(mock_session):
    data = ShippingRuleCreate(rule_type="discount", condition_type="all", discount_type="fixed", discount_value=5)

    with pytest.raises(ShippingRuleValidationError):
        await ShippingRuleService(mock_session).create_rule(data)

    mock_session.add.assert_not_called()
    mock_session.commit.assert_not_awaited()


@pytest.mark.asyncio
async def test_create_rule_rolls_back_on_database_error(mock_session):
    mock_session.commit.side_effect = SQLAlchemyError("duplicate")
    data = ShippingRuleCreate(rule_type="free_shipping", condition_type="all")

    with pytest.raises(DatabaseError):
        await ShippingRuleService(mock_session).create_rule(data)

    mock_session.rollback.assert_awaited_once()


@pytest.mark.asyncio
async def test_update_rule_applies_sent_fields(mock_session, saved_rule_row):
    mock_session.execute.return_value = execute_result(one=saved_rule_row)

    updated = await ShippingRuleService(mock_session).update_rule(7, ShippingRuleUpdate(discount_value=20, active=False))

    assert updated.discount_value == 20
    assert updated.active is False
    assert saved_rule_row.condition_value == {"states": ["sp", "rj"]}
    mock_session.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_update_rule_to_discount_is_rejected(mock_session, saved_rule_row):
    mock_session.execute.return_value = execute_result(one=saved_rule_row)

    with pytest.raises(ShippingRuleValidationError):
        await ShippingRuleService(mock_session).update_rule(7, ShippingRuleUpdate(rule_type="discount"))

    assert saved_rule_row.rule_type == "surcharge"


@pytest.mark.asyncio
async def test_delete_rule(mock_session, saved_rule_row):
    mock_session.execute.return_value = execute_result(one=saved_rule_row)

    assert await ShippingRuleService(mock_session).delete_rule(7) is True

    mock_session.delete.assert_awaited_once_with(saved_rule_row)
    mock_session.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_delete_missing_rule(mock_session):
    mock_session.execute.return_value = execute_result(one=None)

    with pytest.raises(ShippingRuleNotFoundError):
        await ShippingRuleService(mock_session).delete_rule(7)

    mock_session.delete.assert_not_awaited()


@pytest.mark.asyncio
async def test_delete_failure_rolls_back(mock_session, saved_rule_row):
    mock_session.execute.return_value = execute_result(one=saved_rule_row)
    mock_session.commit.side_effect = SQLAlchemyError("foreign key violation")

    with pytest.raises(DatabaseError):
        await ShippingRuleService(mock_session).delete_rule(7)

    mock_session.rollback.assert_awaited_once()
