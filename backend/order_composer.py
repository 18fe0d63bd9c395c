from __future__ import annotations

from typing import Dict, List, Literal

from pydantic import BaseModel, Field, HttpUrl

from . import config
from .catalog import all_possible_extras, find_product, get_tiered_price
from .event_log import log_event
from .whatsapp_client import ERR_API, SendResult, send_text

ShippingMethod = Literal["envio", "retiro"]


class MainItem(BaseModel):
    name: str
    img: HttpUrl
    quantity: int = Field(ge=1)
    subtotal: float


class ExtraItem(BaseModel):
    name: str
    img: HttpUrl
    quantity: int = Field(ge=1)
    total: float


class Shipping(BaseModel):
    method: ShippingMethod
    cost: float


class OrderPayload(BaseModel):
    mainItem: MainItem
    extraItems: List[ExtraItem] = Field(default_factory=list)
    shipping: Shipping
    total: float


class OrderSelection(BaseModel):
    product_id: int
    quantity: int = Field(default=2, ge=1)
    extras: Dict[str, int] = Field(default_factory=dict)
    shipping_method: ShippingMethod


class UnknownItemError(ValueError):
    pass


def shipping_cost(method: ShippingMethod) -> int:
    return config.SHIPPING_COST if method == "envio" else 0


def compose_order(selection: OrderSelection) -> OrderPayload:
    """Price a customization the same way the purchase modal does."""
    product = find_product(selection.product_id)
    if product is None:
        raise UnknownItemError(f"Unknown product: {selection.product_id}")
    extras_by_id = {e.id: e for e in all_possible_extras(product.id)}

    extra_items: List[ExtraItem] = []
    for extra_id, qty in selection.extras.items():
        if qty <= 0:
            continue
        item = extras_by_id.get(extra_id)
        if item is None:
            raise UnknownItemError(f"Unknown extra: {extra_id}")
        extra_items.append(ExtraItem(name=item.name, img=item.img, quantity=qty, total=item.price * qty))

    main_price = get_tiered_price(selection.quantity)
    ship = shipping_cost(selection.shipping_method)
    total = main_price + sum(e.total for e in extra_items) + ship
    return OrderPayload(
        mainItem=MainItem(name=product.name, img=product.img, quantity=selection.quantity, subtotal=main_price),
        extraItems=extra_items,
        shipping=Shipping(method=selection.shipping_method, cost=ship),
        total=total,
    )


def _money(value: float) -> str:
    return f"${int(value)}" if float(value).is_integer() else f"${value:.2f}"


def format_order_message(payload: OrderPayload) -> str:
    lines = [
        "*¡Hola Trama Hogar!* 👋",
        "Nuevo pedido de presupuesto:",
        "",
        "🧵 *ITEM PRINCIPAL:*",
        f"↳ *{payload.mainItem.name}*",
        f"↳ Cantidad: {payload.mainItem.quantity}",
        f"↳ Subtotal: {_money(payload.mainItem.subtotal)}",
        "",
    ]
    if payload.extraItems:
        lines.append("✨ *ARTÍCULOS EXTRAS:*")
        for item in payload.extraItems:
            lines.append(f"↳ {item.name} (Cant: {item.quantity}) - Total item: {_money(item.total)}")
        lines.append("")

    lines.append("🚚 *MÉTODO DE ENTREGA:*")
    if payload.shipping.method == "envio":
        lines.append(f"↳ Envío (Costo: {_money(payload.shipping.cost)})")
    else:
        lines.append("↳ Retiro en Local")
    lines.append("")
    lines.append(f"💰 *PRESUPUESTO TOTAL: {_money(payload.total)}*")
    return "\n".join(lines)


def order_chat_summary(payload: OrderPayload) -> str:
    return (
        f"He realizado un pedido de presupuesto para: {payload.mainItem.quantity}x "
        f"{payload.mainItem.name}. Total: {_money(payload.total)}."
    )


def send_order(payload: OrderPayload) -> SendResult:
    log_event("sendOrderToWhatsApp", "info", "Attempting to send order to WhatsApp.", payload)
    result = send_text(format_order_message(payload), source="sendOrderToWhatsApp")
    if not result.success and result.error == ERR_API:
        result.error = "Failed to send order via API."
    return result
