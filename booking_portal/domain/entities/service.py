from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Union


@dataclass(frozen=True)
class NamedService:
    """A service known only by its display name."""

    name: str


@dataclass(frozen=True)
class DetailedService:
    """A catalog service record; `details` keeps the raw server fields for round-tripping."""

    id: str | None
    name: str
    price: Decimal | None = None
    category: str | None = None
    details: dict[str, Any] = field(default_factory=dict, compare=False)


Service = Union[NamedService, DetailedService]


def _to_decimal(value: Any) -> Decimal | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None


def service_from_payload(value: Any) -> Service | None:
    if isinstance(value, (NamedService, DetailedService)):
        return value
    if isinstance(value, str):
        name = value.strip()
        return NamedService(name=name) if name else None
    if isinstance(value, dict):
        service_id = value.get("id") or value.get("_id") or value.get("serviceId")
        name = value.get("name") or value.get("serviceName") or value.get("title") or ""
        price = None
        for key in ("price", "amount", "cost"):
            price = _to_decimal(value.get(key))
            if price is not None:
                break
        return DetailedService(
            id=str(service_id) if service_id else None,
            name=str(name).strip(),
            price=price,
            category=value.get("category"),
            details=dict(value),
        )
    return None


def service_to_payload(service: Service | None) -> str | dict[str, Any] | None:
    if service is None:
        return None
    if isinstance(service, NamedService):
        return service.name
    payload = dict(service.details)
    payload["name"] = service.name
    if service.id:
        payload["id"] = service.id
    if service.price is not None and not any(key in payload for key in ("price", "amount", "cost")):
        payload["price"] = float(service.price)
    if service.category:
        payload["category"] = service.category
    return payload


def service_name(service: Service | None) -> str:
    if service is None:
        return ""
    return service.name


def service_id(service: Service | None) -> str | None:
    if isinstance(service, DetailedService):
        return service.id
    return None


def service_price(service: Service | None) -> Decimal | None:
    if isinstance(service, DetailedService):
        return service.price
    return None


def is_blank_service(service: Service | None) -> bool:
    if service is None:
        return True
    if isinstance(service, NamedService):
        return not service.name.strip()
    return False
