from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel


class Product(BaseModel):
    id: int
    name: str
    img: str
    price: int
    image_hint: str = ""


class Extra(BaseModel):
    id: str
    name: str
    price: int
    img: str
    suggested: bool = False
    image_hint: str = ""
    description: Optional[str] = None


IMAGE_BASE = "https://images.tramahogar.com"


def _img(slug: str) -> str:
    return f"{IMAGE_BASE}/{slug}.jpg"


PRODUCTS: List[Product] = [
    Product(id=1, name="Individual Trama Natural", img=_img("product-1"), price=195, image_hint="woven placemat"),
    Product(id=2, name="Servilletas Estampa", img=_img("product-2"), price=195, image_hint="printed napkins"),
    Product(id=3, name="Cesta Panera Soft", img=_img("product-3"), price=195, image_hint="bread basket"),
    Product(id=4, name="Individual Gris Nórdico", img=_img("product-4"), price=195, image_hint="grey placemat"),
    Product(id=5, name="Set Cocina Rustik", img=_img("product-5"), price=195, image_hint="kitchen set"),
    Product(id=6, name="Servilleta Bordado", img=_img("product-6"), price=195, image_hint="embroidered napkin"),
    Product(id=7, name="Centro de Mesa Sol", img=_img("product-7"), price=195, image_hint="table centerpiece"),
    Product(id=8, name="Portacubiertos Deco", img=_img("product-8"), price=195, image_hint="cutlery holder"),
    Product(id=9, name="Camino Costa", img=_img("product-9"), price=195, image_hint="table runner"),
]

EXTRAS: List[Extra] = [
    Extra(id="x1", name="Anillos para servilletas (8p)", price=292, img=_img("extra-1"), suggested=True, image_hint="napkin rings"),
    Extra(id="x2", name="Pegatinas 'Gracias' (500p)", price=85, img=_img("extra-2"), suggested=True, image_hint="thank you stickers"),
    Extra(id="x3", name="Pétalos de rosa (1008p)", price=95, img=_img("extra-3"), suggested=True, image_hint="rose petals"),
    Extra(id="x4", name="Cinta de Raso Decorativa", price=120, img=_img("extra-4"), suggested=False, image_hint="satin ribbon"),
]

# Quantity brackets, highest first: (min quantity, bracket price)
PRICE_TIERS = [(6, 1100), (4, 750), (2, 390)]
UNIT_PRICE = 195


def get_tiered_price(qty: int) -> int:
    """Total price for `qty` units of a main item.

    The price is decided by the quantity bracket, not by multiplying a unit
    price: 2-3 units cost 390, 4-5 cost 750 and 6 or more cost 1100.
    """
    for min_qty, price in PRICE_TIERS:
        if qty >= min_qty:
            return price
    return UNIT_PRICE * qty


def find_product(product_id: int) -> Optional[Product]:
    for p in PRODUCTS:
        if p.id == product_id:
            return p
    return None


def product_as_extra(product: Product) -> Extra:
    return Extra(
        id=f"p-{product.id}",
        name=product.name,
        price=product.price,
        img=product.img,
        suggested=False,
        image_hint=product.image_hint,
    )


def all_possible_extras(product_id: int) -> List[Extra]:
    """Add-on catalog followed by every other product offered as an extra."""
    others = [product_as_extra(p) for p in PRODUCTS if p.id != product_id]
    return [e.model_copy() for e in EXTRAS] + others


def default_suggestions() -> List[Extra]:
    return [e.model_copy() for e in EXTRAS if e.suggested]
