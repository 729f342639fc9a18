"""
mrbeans/routers/coffees.py — Coffee records and their price history
Endpoints: GET/POST /api/coffees, PUT/DELETE /api/coffees/{id},
POST /api/coffees/{id}/price, DELETE /api/coffees/{id}/price/{price_id}
"""

from datetime import datetime
from typing import Any

from fastapi import APIRouter, Body, Depends
from pydantic_core import PydanticCustomError

from mrbeans.core.errors import ApiError, create_success_response, not_found
from mrbeans.core.logging import log_data_change
from mrbeans.routers.common import (
    ADMIN_WRITE,
    find_index,
    get_store,
    load_collection,
    new_id,
    save_collection,
    today,
)
from mrbeans.storage.json_store import JsonStore
from mrbeans.validators.coffee import parse_iso_date, validate_coffee, validate_price_entry

router = APIRouter(prefix="/coffees", tags=["coffees"])

COFFEES_FILE = "coffees.json"


def _entry_date(entry: dict[str, Any]) -> datetime:
    try:
        return parse_iso_date(str(entry.get("date", "")))
    except PydanticCustomError:
        return datetime.min


def add_price_entry(coffee: dict[str, Any], entry: dict[str, Any]) -> dict[str, Any]:
    """
    Append `entry` to the coffee's history. When it is the most recent entry
    by date (ties keep insertion order) it becomes the current price/store.
    """
    history = coffee.setdefault("priceHistory", [])
    history.append(entry)
    latest = sorted(history, key=_entry_date, reverse=True)[0]
    if latest is entry:
        coffee["priceEUR"] = entry["price"]
        coffee["storeId"] = entry["storeId"]
    return coffee


def _find_coffee(data: dict[str, Any], coffee_id: str) -> int:
    index = find_index(data["coffees"], coffee_id)
    if index == -1:
        raise ApiError(not_found("Kava"))
    return index


# ──────────────────────────────────────────────────────────────────────────────
# Reads
# ──────────────────────────────────────────────────────────────────────────────

@router.get("")
async def list_coffees(store: JsonStore = Depends(get_store)) -> dict:
    data = load_collection(store, COFFEES_FILE)
    return create_success_response(data["coffees"])


# ──────────────────────────────────────────────────────────────────────────────
# Writes (admin)
# ──────────────────────────────────────────────────────────────────────────────

@router.post("", dependencies=ADMIN_WRITE)
async def create_coffee(payload: Any = Body(None), store: JsonStore = Depends(get_store)) -> dict:
    error, value = validate_coffee(payload)
    if error:
        raise ApiError(error)

    data = load_collection(store, COFFEES_FILE)
    coffee = {
        **value,
        "id": new_id(),
        "priceHistory": [{
            "id": new_id(),
            "date": today(),
            "price": value["priceEUR"],
            "storeId": value["storeId"],
        }],
        "createdAt": today(),
    }
    data["coffees"].append(coffee)
    save_collection(store, COFFEES_FILE, data)

    log_data_change("coffee", "create", coffee["id"], coffee["name"])
    return create_success_response(coffee, "Kava dodana")


@router.put("/{coffee_id}", dependencies=ADMIN_WRITE)
async def update_coffee(
    coffee_id: str,
    payload: Any = Body(None),
    store: JsonStore = Depends(get_store),
) -> dict:
    """Partial update; a changed priceEUR is also recorded in the history."""
    error, updates = validate_coffee(payload, partial=True)
    if error:
        raise ApiError(error)

    data = load_collection(store, COFFEES_FILE)
    index = _find_coffee(data, coffee_id)
    existing = data["coffees"][index]

    new_price = updates.get("priceEUR")
    if new_price is not None and new_price != existing.get("priceEUR"):
        updates["priceHistory"] = [
            *existing.get("priceHistory", []),
            {
                "id": new_id(),
                "date": today(),
                "price": new_price,
                "storeId": updates.get("storeId") or existing.get("storeId"),
            },
        ]

    coffee = {**existing, **updates}
    data["coffees"][index] = coffee
    save_collection(store, COFFEES_FILE, data)

    log_data_change("coffee", "update", coffee_id, coffee.get("name", ""))
    return create_success_response(coffee, "Kava ažurirana")


@router.delete("/{coffee_id}", dependencies=ADMIN_WRITE)
async def delete_coffee(coffee_id: str, store: JsonStore = Depends(get_store)) -> dict:
    data = load_collection(store, COFFEES_FILE)
    index = _find_coffee(data, coffee_id)
    deleted = data["coffees"].pop(index)
    save_collection(store, COFFEES_FILE, data)

    log_data_change("coffee", "delete", coffee_id, deleted.get("name", ""))
    return create_success_response(deleted, "Kava obrisana")


# ──────────────────────────────────────────────────────────────────────────────
# Price history (admin)
# ──────────────────────────────────────────────────────────────────────────────

@router.post("/{coffee_id}/price", dependencies=ADMIN_WRITE)
async def add_price(
    coffee_id: str,
    payload: Any = Body(None),
    store: JsonStore = Depends(get_store),
) -> dict:
    error, value = validate_price_entry(payload)
    if error:
        raise ApiError(error)

    data = load_collection(store, COFFEES_FILE)
    index = _find_coffee(data, coffee_id)
    entry = {
        "id": new_id(),
        "date": value["date"],
        "price": value["price"],
        "storeId": value["storeId"],
    }
    coffee = add_price_entry(data["coffees"][index], entry)
    save_collection(store, COFFEES_FILE, data)

    log_data_change("price", "create", entry["id"], f"{coffee.get('name', '')} {entry['price']}€ @ {entry['storeId']}")
    return create_success_response(coffee, "Cijena dodana")


@router.delete("/{coffee_id}/price/{price_id}", dependencies=ADMIN_WRITE)
async def delete_price(
    coffee_id: str,
    price_id: str,
    store: JsonStore = Depends(get_store),
) -> dict:
    data = load_collection(store, COFFEES_FILE)
    coffee = data["coffees"][_find_coffee(data, coffee_id)]
    history = coffee.get("priceHistory", [])

    price_index = find_index(history, price_id)
    if price_index == -1:
        raise ApiError(not_found("Unos cijene"))
    history.pop(price_index)
    save_collection(store, COFFEES_FILE, data)

    log_data_change("price", "delete", price_id, coffee.get("name", ""))
    return create_success_response(coffee, "Cijena obrisana")
