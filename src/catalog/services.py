"""Catalog lookups consumed by the sales pipeline."""
from __future__ import annotations

import uuid
from dataclasses import dataclass
from decimal import Decimal

from .models import Product


@dataclass(frozen=True)
class ProductInfo:
    id: str
    name: str
    price: Decimal


def _to_info(product: Product) -> ProductInfo:
    return ProductInfo(id=str(product.pk), name=product.name, price=product.price)


def _parse_ids(ids):
    parsed = []
    for raw in ids:
        try:
            parsed.append(uuid.UUID(str(raw)))
        except (TypeError, ValueError):
            continue
    return parsed


def get_product(product_id) -> ProductInfo | None:
    """Return name and current price of a product, or None when unknown."""
    parsed = _parse_ids([product_id])
    if not parsed:
        return None
    product = Product.objects.filter(pk=parsed[0]).first()
    return _to_info(product) if product else None


def get_products(product_ids) -> dict[str, ProductInfo]:
    """Bulk variant of :func:`get_product`, keyed by product id string."""
    parsed = _parse_ids(set(product_ids))
    if not parsed:
        return {}
    return {str(p.pk): _to_info(p) for p in Product.objects.filter(pk__in=parsed)}
