"""
mrbeans/routers/catalog.py — Brands, stores and countries
Endpoints: GET/POST /api/brands, PUT /api/brands/{id}, GET/POST /api/stores,
GET/POST /api/countries
"""

import re
from typing import Any

from fastapi import APIRouter, Body, Depends

from mrbeans.core.errors import ApiError, conflict, create_success_response, not_found
from mrbeans.core.logging import log_data_change
from mrbeans.routers.common import (
    ADMIN_WRITE,
    find_index,
    get_store,
    load_collection,
    new_id,
    save_collection,
)
from mrbeans.storage.json_store import JsonStore
from mrbeans.validators.brand import validate_brand
from mrbeans.validators.country import validate_country
from mrbeans.validators.store import validate_store

router = APIRouter(tags=["catalog"])

BRANDS_FILE = "brands.json"
STORES_FILE = "stores.json"
COUNTRIES_FILE = "countries.json"


def country_id(name: str) -> str:
    """"Costa Rica" → "costa_rica"."""
    return re.sub(r"\s", "_", name.lower())


# ──────────────────────────────────────────────────────────────────────────────
# Brands
# ──────────────────────────────────────────────────────────────────────────────

@router.get("/brands")
async def list_brands(store: JsonStore = Depends(get_store)) -> dict:
    return create_success_response(load_collection(store, BRANDS_FILE)["brands"])


@router.post("/brands", dependencies=ADMIN_WRITE)
async def create_brand(payload: Any = Body(None), store: JsonStore = Depends(get_store)) -> dict:
    error, value = validate_brand(payload)
    if error:
        raise ApiError(error)

    data = load_collection(store, BRANDS_FILE)
    brand = {"id": new_id(), **value}
    data["brands"].append(brand)
    save_collection(store, BRANDS_FILE, data)

    log_data_change("brand", "create", brand["id"], brand["name"])
    return create_success_response(brand, "Brend dodan")


@router.put("/brands/{brand_id}", dependencies=ADMIN_WRITE)
async def update_brand(
    brand_id: str,
    payload: Any = Body(None),
    store: JsonStore = Depends(get_store),
) -> dict:
    # Full validation: omitted optional fields fall back to their defaults
    error, value = validate_brand(payload)
    if error:
        raise ApiError(error)

    data = load_collection(store, BRANDS_FILE)
    index = find_index(data["brands"], brand_id)
    if index == -1:
        raise ApiError(not_found("Brend"))

    brand = {**data["brands"][index], **value}
    data["brands"][index] = brand
    save_collection(store, BRANDS_FILE, data)

    log_data_change("brand", "update", brand_id, brand["name"])
    return create_success_response(brand, "Brend ažuriran")


# ──────────────────────────────────────────────────────────────────────────────
# Stores
# ──────────────────────────────────────────────────────────────────────────────

@router.get("/stores")
async def list_stores(store: JsonStore = Depends(get_store)) -> dict:
    return create_success_response(load_collection(store, STORES_FILE)["stores"])


@router.post("/stores", dependencies=ADMIN_WRITE)
async def create_store(payload: Any = Body(None), store: JsonStore = Depends(get_store)) -> dict:
    error, value = validate_store(payload)
    if error:
        raise ApiError(error)

    data = load_collection(store, STORES_FILE)
    record = {"id": new_id(), **value}
    data["stores"].append(record)
    save_collection(store, STORES_FILE, data)

    log_data_change("store", "create", record["id"], record["name"])
    return create_success_response(record, "Trgovina dodana")


# ──────────────────────────────────────────────────────────────────────────────
# Countries
# ──────────────────────────────────────────────────────────────────────────────

@router.get("/countries")
async def list_countries(store: JsonStore = Depends(get_store)) -> dict:
    return create_success_response(load_collection(store, COUNTRIES_FILE)["countries"])


@router.post("/countries", dependencies=ADMIN_WRITE)
async def create_country(payload: Any = Body(None), store: JsonStore = Depends(get_store)) -> dict:
    error, value = validate_country(payload)
    if error:
        raise ApiError(error)

    data = load_collection(store, COUNTRIES_FILE)
    record = {"id": country_id(value["name"]), **value}
    if find_index(data["countries"], record["id"]) != -1:
        raise ApiError(conflict(f"Država '{value['name']}' već postoji"))

    data["countries"].append(record)
    save_collection(store, COUNTRIES_FILE, data)

    log_data_change("country", "create", record["id"], record["name"])
    return create_success_response(record, "Država dodana")
