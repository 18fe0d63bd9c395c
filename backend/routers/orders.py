from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Body, HTTPException, Query
from pydantic import ValidationError

from .. import ai_assist
from ..catalog import EXTRAS, PRODUCTS, all_possible_extras, find_product, get_tiered_price
from ..event_log import log_event
from ..order_composer import (
    OrderPayload,
    OrderSelection,
    UnknownItemError,
    compose_order,
    order_chat_summary,
    send_order,
)

router = APIRouter(tags=["orders"])


@router.get("/api/products")
def api_products():
    return {"items": [p.model_dump() for p in PRODUCTS]}


@router.get("/api/extras")
def api_extras(product_id: int | None = None):
    if product_id is None:
        return {"items": [e.model_dump() for e in EXTRAS]}
    if find_product(product_id) is None:
        raise HTTPException(status_code=404, detail="Product not found.")
    return {"items": [e.model_dump() for e in all_possible_extras(product_id)]}


@router.get("/api/price")
def api_price(qty: int = Query(..., ge=1)):
    return {"qty": qty, "price": get_tiered_price(qty)}


@router.get("/api/suggestions/{product_id}")
def api_suggestions(product_id: int):
    product = find_product(product_id)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found.")
    items = ai_assist.get_suggestions(product)
    return {"items": [e.model_dump() for e in items]}


@router.post("/api/order/quote")
def api_quote(selection: OrderSelection):
    try:
        payload = compose_order(selection)
    except UnknownItemError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"order": payload.model_dump(mode="json"), "summary": order_chat_summary(payload)}


@router.post("/api/order")
def api_order(body: Dict[str, Any] = Body(...)):
    try:
        payload = OrderPayload.model_validate(body)
    except ValidationError as e:
        log_event("sendOrderToWhatsApp", "error", "Invalid order payload.", {"errors": e.errors(include_url=False)})
        return {"success": False, "error": "Invalid data provided."}

    result = send_order(payload)
    if result.success:
        return {
            "success": True,
            "message": "Order sent successfully.",
            "chatMessage": order_chat_summary(payload),
        }
    return {"success": False, "error": result.error}
