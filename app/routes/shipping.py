import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    DatabaseError,
    NoShippingOptionsError,
    RateProviderError,
    SettingsError,
    ShippingQuoteNotFoundError,
    ShippingQuoteValidationError,
    ShippingRuleNotFoundError,
    ShippingRuleValidationError,
)
from app.dependencies import get_cache, get_db, get_rate_provider
from app.schemas.shipping import (
    ProductionDaysSetting,
    RulePreviewRequest,
    ShippingQuoteRead,
    ShippingQuoteRequest,
    ShippingRuleCreate,
    ShippingRuleRead,
    ShippingRulesResult,
    ShippingRuleUpdate,
    SystemSettingRead,
)
from app.services.settings_service import SettingsService
from app.services.shipping.base import BaseRateProvider
from app.services.shipping.cache import QuoteCache
from app.services.shipping.quote_service import ShippingQuoteService
from app.services.shipping.rule_service import ShippingRuleService
from app.services.shipping.rules import apply_shipping_rules

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/shipping",
    tags=["shipping"],
    responses={404: {"description": "Not found"}},
)


# --- Rules ---

@router.get("/rules", response_model=List[ShippingRuleRead])
async def list_shipping_rules(db: AsyncSession = Depends(get_db)):
    """All shipping rules in evaluation order."""
    return await ShippingRuleService(db).list_rules()


@router.post("/rules", response_model=ShippingRuleRead, status_code=201)
async def create_shipping_rule(
    rule: ShippingRuleCreate,
    db: AsyncSession = Depends(get_db)
):
    try:
        return await ShippingRuleService(db).create_rule(rule)
    except ShippingRuleValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except DatabaseError as e:
        logger.error(f"Error creating shipping rule: {str(e)}")
        raise HTTPException(status_code=500, detail="Error creating shipping rule")


@router.post("/rules/preview", response_model=ShippingRulesResult)
async def preview_shipping_rules(
    preview: RulePreviewRequest,
    db: AsyncSession = Depends(get_db)
):
    """Price the given options with the stored active rules, without saving anything."""
    try:
        rules = await ShippingRuleService(db).get_active_rules()
    except DatabaseError as e:
        logger.error(f"Error loading shipping rules for preview: {str(e)}")
        raise HTTPException(status_code=500, detail="Error loading shipping rules")
    production_days = await SettingsService(db).get_production_days()

    return apply_shipping_rules(
        preview.shipping_options,
        preview.order_value,
        preview.destination_state,
        rules=rules,
        production_days=production_days,
    )


@router.put("/rules/{rule_id}", response_model=ShippingRuleRead)
async def update_shipping_rule(
    rule_id: int,
    rule: ShippingRuleUpdate,
    db: AsyncSession = Depends(get_db)
):
    try:
        return await ShippingRuleService(db).update_rule(rule_id, rule)
    except ShippingRuleNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ShippingRuleValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except DatabaseError as e:
        logger.error(f"Error updating shipping rule {rule_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Error updating shipping rule")


@router.delete("/rules/{rule_id}")
async def delete_shipping_rule(
    rule_id: int,
    db: AsyncSession = Depends(get_db)
):
    try:
        await ShippingRuleService(db).delete_rule(rule_id)
    except ShippingRuleNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except DatabaseError as e:
        logger.error(f"Error deleting shipping rule {rule_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Error deleting shipping rule")
    return {"success": True}


# --- Settings ---

@router.get("/settings", response_model=List[SystemSettingRead])
async def list_settings(db: AsyncSession = Depends(get_db)):
    return await SettingsService(db).get_all_settings()


@router.get("/settings/production-days", response_model=ProductionDaysSetting)
async def get_production_days(db: AsyncSession = Depends(get_db)):
    days = await SettingsService(db).get_production_days()
    return ProductionDaysSetting(production_days=days)


@router.put("/settings/production-days", response_model=ProductionDaysSetting)
async def set_production_days(
    setting: ProductionDaysSetting,
    db: AsyncSession = Depends(get_db)
):
    try:
        days = await SettingsService(db).set_production_days(setting.production_days)
    except SettingsError as e:
        logger.error(f"Error saving production days: {str(e)}")
        raise HTTPException(status_code=500, detail="Error saving production days")
    return ProductionDaysSetting(production_days=days)


# --- Quotes ---

@router.post("/quotes", response_model=ShippingQuoteRead, status_code=201)
async def create_shipping_quote(
    quote_request: ShippingQuoteRequest,
    db: AsyncSession = Depends(get_db),
    provider: BaseRateProvider = Depends(get_rate_provider),
    cache: QuoteCache = Depends(get_cache),
):
    """Quote through the rate provider, apply the rules and save the result."""
    try:
        return await ShippingQuoteService(db, provider, cache).create_quote(quote_request)
    except ShippingQuoteValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except NoShippingOptionsError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RateProviderError as e:
        raise HTTPException(status_code=502, detail=str(e))
    except DatabaseError as e:
        logger.error(f"Error saving shipping quote: {str(e)}")
        raise HTTPException(status_code=500, detail="Error saving shipping quote")


@router.get("/quotes/{quote_id}", response_model=ShippingQuoteRead)
async def get_shipping_quote(
    quote_id: int,
    db: AsyncSession = Depends(get_db)
):
    try:
        return await ShippingQuoteService(db, provider=None).get_quote(quote_id)
    except ShippingQuoteNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/quotes/{quote_id}/requote", response_model=ShippingQuoteRead)
async def requote_shipping_quote(
    quote_id: int,
    db: AsyncSession = Depends(get_db),
    provider: BaseRateProvider = Depends(get_rate_provider),
    cache: QuoteCache = Depends(get_cache),
):
    """Refresh a saved quote with current provider prices and current rules."""
    try:
        return await ShippingQuoteService(db, provider, cache).requote(quote_id)
    except ShippingQuoteNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except (ShippingQuoteValidationError, NoShippingOptionsError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RateProviderError as e:
        raise HTTPException(status_code=502, detail=str(e))
    except DatabaseError as e:
        logger.error(f"Error requoting shipping quote {quote_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Error requoting shipping quote")
