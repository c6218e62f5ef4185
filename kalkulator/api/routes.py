# kalkulator/api/routes.py
from __future__ import annotations

from dataclasses import replace
from datetime import date
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException

from kalkulator.core.logging_config import logger
from kalkulator.forms import registry
from kalkulator.forms.models import FormConfig
from kalkulator.hashing.codec import HashCodec, create_enquiry_url, get_codec
from kalkulator.hashing.payload import HashPayload, build_hash_payload
from kalkulator.offers.offer_data import offer_data_from_payload
from kalkulator.pricing.engine import PricingEngine
from kalkulator.pricing.errors import PricingValidationError
from kalkulator.pricing.models import CalculationResult
from kalkulator.pricing.reconstruction import ensure_calculation_details
from kalkulator.scheduling.start_date import category_of, enforce_minimum_delay

from .schemas import (
    CalculateRequest,
    HashDecodeRequest,
    HashEncodeRequest,
    HashEncodeResponse,
    OfferRequest,
    ServiceOut,
)

router = APIRouter(prefix="/api", tags=["kalkulator"])


def get_engine() -> PricingEngine:
    return PricingEngine()


def get_today() -> date:
    return date.today()


def _form_config(service_type: str) -> FormConfig:
    try:
        return registry.get(service_type)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown service type: {service_type}")


def _decode_or_404(codec: HashCodec, token: str) -> HashPayload:
    payload = codec.decode(token)
    if payload is None:
        raise HTTPException(status_code=404, detail="HASH_INVALID")
    return payload


@router.get("/services", response_model=List[ServiceOut])
def list_services() -> List[ServiceOut]:
    return [
        ServiceOut(id=c.id, title=c.title, category=c.category, description=c.description)
        for c in registry.all_configs()
    ]


@router.post("/calculate/{service_type}")
def calculate(
    service_type: str,
    body: CalculateRequest,
    engine: PricingEngine = Depends(get_engine),
) -> Dict[str, Any]:
    config = _form_config(service_type)
    try:
        result = engine.calculate_price(body.form_data, config)
    except PricingValidationError as e:
        raise HTTPException(status_code=422, detail={"field": e.field, "message": e.message})
    return result.to_dict()


@router.post("/hash/encode", response_model=HashEncodeResponse)
def encode_hash(body: HashEncodeRequest, codec: HashCodec = Depends(get_codec)) -> HashEncodeResponse:
    config = _form_config(body.service_type)
    result = CalculationResult.from_dict(body.result)
    payload = build_hash_payload(result, body.form_data, config).with_enquiry(
        customer=body.customer.to_domain() if body.customer else None,
        confirmation_step_note=body.confirmation_step_note,
        start_date=body.start_date,
    )
    token = codec.encode(payload, optimized=body.optimized)
    logger.info("hash_encoded", service_type=config.id, optimized=body.optimized, length=len(token))
    return HashEncodeResponse(hash=token, url=create_enquiry_url(token))


@router.post("/hash/decode")
def decode_hash(
    body: HashDecodeRequest,
    codec: HashCodec = Depends(get_codec),
    engine: PricingEngine = Depends(get_engine),
    today: date = Depends(get_today),
) -> Dict[str, Any]:
    payload = _decode_or_404(codec, body.hash)
    data = payload.calculation_data
    config = registry.find(payload.service_type)
    if data is None:
        return payload.to_dict()

    # a stale token must never surface a start date the policy would reject
    start = enforce_minimum_delay(data.start_date, category_of(config), today)
    payload = payload.with_enquiry(start_date=start)

    if body.reconstruct and config is not None:
        result = ensure_calculation_details(data.result, data.form_data, config, engine=engine)
        payload = replace(payload, calculation_data=replace(payload.calculation_data, result=result))
    return payload.to_dict()


@router.post("/offer")
def offer(
    body: OfferRequest,
    codec: HashCodec = Depends(get_codec),
    engine: PricingEngine = Depends(get_engine),
    today: date = Depends(get_today),
) -> Dict[str, Any]:
    payload = _decode_or_404(codec, body.hash)
    config = _form_config(payload.service_type)
    if payload.calculation_data is None:
        raise HTTPException(status_code=422, detail="Hash carries no calculation data")
    return offer_data_from_payload(payload, config, today=today, engine=engine).to_dict()
