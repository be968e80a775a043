"""Small FastAPI app wired entirely through routechain pipelines.

Run with:
    uvicorn routechain.examples.items_app:app --port 8200
"""

import itertools
from typing import Dict, Optional

from fastapi import FastAPI
from pydantic import BaseModel, Field

from routechain import FinalResult, Halt, create_pipeline
from routechain.config import configure_logging
from routechain.pipeline.stages import api_key_stage

configure_logging()

app = FastAPI(title="routechain items example")


class PageQuery(BaseModel):
    page: int = Field(default=1, ge=1)
    size: int = Field(default=20, ge=1, le=100)


class NewItem(BaseModel):
    name: str = Field(min_length=1)
    price: float = Field(ge=0)
    tags: list[str] = Field(default_factory=list)


class ItemParams(BaseModel):
    item_id: int


ITEMS: Dict[int, dict] = {}
_ids = itertools.count(1)


async def list_items(context, request, response):
    query: PageQuery = context["query"]
    items = sorted(ITEMS.values(), key=lambda item: item["id"])
    start = (query.page - 1) * query.size
    return FinalResult(200, {"page": query.page, "items": items[start:start + query.size]})


async def create_item(context, request, response):
    item = {"id": next(_ids), **context["body"].model_dump()}
    ITEMS[item["id"]] = item
    return FinalResult(201, item)


async def load_item(context, request, response):
    item: Optional[dict] = ITEMS.get(context["params"].item_id)
    if item is None:
        return Halt(404, {"message": "Item not found"})
    return {"next": True, "item": item}


async def delete_item(context, request, response):
    del ITEMS[context["item"]["id"]]
    return FinalResult(200, context["item"])


pipeline = create_pipeline(app)
require_auth = pipeline.middleware(api_key_stage()).build_link(name="require_auth")
authed = pipeline.chain(require_auth)

pipeline.query_schema(PageQuery).path("/items").get(list_items).build()
authed.body_schema(NewItem).path("/items").post(create_item).build()
authed.params_schema(ItemParams).middleware(load_item).path("/items/{item_id}").delete(delete_item).build()
