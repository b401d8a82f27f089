# storefront/catalog_service/main.py
from fastapi import FastAPI, HTTPException, Query

app = FastAPI(title="Catalog Service (dev mock)")


# ceny w paisach (minor units)
ITEMS = {
    "8f2d6c1e-0b5a-4c51-9d7e-1a2b3c4d5e01": {
        "id": "8f2d6c1e-0b5a-4c51-9d7e-1a2b3c4d5e01",
        "title": "Mechanical Keyboard",
        "price": 1999,
        "currency": "INR",
        "image_url": None,
    },
    "8f2d6c1e-0b5a-4c51-9d7e-1a2b3c4d5e02": {
        "id": "8f2d6c1e-0b5a-4c51-9d7e-1a2b3c4d5e02",
        "title": "Wireless Mouse",
        "price": 2999,
        "currency": "INR",
        "image_url": None,
    },
    "8f2d6c1e-0b5a-4c51-9d7e-1a2b3c4d5e03": {
        "id": "8f2d6c1e-0b5a-4c51-9d7e-1a2b3c4d5e03",
        "title": "USB-C Cable",
        "price": 499,
        "currency": "INR",
        "image_url": None,
    },
}


@app.get("/items")
def list_items(ids: str = Query("")):
    wanted = [i for i in ids.split(",") if i]
    if not wanted:
        return {"items": list(ITEMS.values())}
    return {"items": [ITEMS[i] for i in wanted if i in ITEMS]}


@app.get("/items/{item_id}")
def get_item(item_id: str):
    item = ITEMS.get(item_id)
    if not item:
        raise HTTPException(status_code=404, detail="Item not found")
    return item
