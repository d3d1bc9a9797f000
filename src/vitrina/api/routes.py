"""
Handlers HTTP.

Todos responden JSON. Los errores de dominio los traduce el middleware
de errores (ver vitrina.api.app).
"""

from datetime import datetime, timezone

import structlog
from aiohttp import web

from vitrina.context import AppContext
from vitrina.errors import InvalidInput
from vitrina.models import UploadedImage
from vitrina.services import GenerationContext

logger = structlog.get_logger()

CONTEXT = web.AppKey("context", AppContext)

routes = web.RouteTableDef()


def _ctx(request: web.Request) -> AppContext:
    return request.app[CONTEXT]


def _caller_id(request: web.Request) -> str:
    """Identidad del caller según el token (o el usuario anónimo)."""
    ctx = _ctx(request)
    return ctx.identity.resolve(request.headers.get("Authorization"))


async def _json_body(request: web.Request) -> dict:
    try:
        body = await request.json()
    except ValueError:
        raise InvalidInput("El body no es JSON válido")
    if not isinstance(body, dict):
        raise InvalidInput("El body tiene que ser un objeto JSON")
    return body


def _text_field(body: dict, name: str) -> str | None:
    """Campo de texto del body; otro tipo de JSON es InvalidInput."""
    value = body.get(name)
    if value is None or isinstance(value, str):
        return value
    raise InvalidInput(f"{name} tiene que ser texto", {"field": name})


def _optional_text(value) -> str | None:
    if value is None:
        return None
    return str(value).strip() or None


@routes.get("/api/health")
async def health(request: web.Request) -> web.Response:
    return web.json_response(
        {
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "services": _ctx(request).services,
        }
    )


@routes.post("/api/ai/generate-listing")
async def generate_listing(request: web.Request) -> web.Response:
    ctx = _ctx(request)
    # Nunca del body: el vendedor es el caller autenticado
    seller_id = _caller_id(request)

    try:
        form = await request.post()
    except web.HTTPRequestEntityTooLarge:
        raise InvalidInput("El request supera el tamaño máximo permitido")

    images = [
        UploadedImage(
            data=field.file.read(),
            content_type=field.content_type,
            filename=field.filename,
        )
        for field in form.getall("images", [])
        if isinstance(field, web.FileField)
    ]

    result = await ctx.pipeline.generate(
        images,
        GenerationContext(
            location=_optional_text(form.get("location")),
            condition=_optional_text(form.get("condition")),
        ),
        seller_id=seller_id,
    )
    return web.json_response(
        {"success": True, "listing": result.listing, "aiAnalysis": result.payload}
    )


@routes.get("/api/listings/search")
async def search_listings(request: web.Request) -> web.Response:
    query = request.query
    listings = await _ctx(request).search.search(
        q=query.get("q"),
        category=query.get("category"),
        location=query.get("location"),
        min_price=query.get("minPrice"),
        max_price=query.get("maxPrice"),
    )
    return web.json_response({"listings": listings, "count": len(listings)})


@routes.get("/api/listings/{listing_id}")
async def get_listing(request: web.Request) -> web.Response:
    listing = await _ctx(request).search.get_listing(request.match_info["listing_id"])
    return web.json_response({"listing": listing})


@routes.post("/api/conversations/start")
async def start_conversation(request: web.Request) -> web.Response:
    buyer_id = _caller_id(request)
    body = await _json_body(request)

    started = await _ctx(request).conversations.start(
        listing_id=_optional_text(_text_field(body, "listingId")),
        buyer_id=buyer_id,
        first_message=_text_field(body, "message") or "",
    )
    return web.json_response(
        {"success": True, "conversation": started.conversation, "aiResponse": started.reply}
    )


@routes.post("/api/conversations/{conversation_id}/message")
async def post_message(request: web.Request) -> web.Response:
    sender_id = _caller_id(request)
    body = await _json_body(request)

    reply = await _ctx(request).conversations.continue_conversation(
        conversation_id=request.match_info["conversation_id"],
        sender_id=sender_id,
        message=_text_field(body, "message") or "",
        sender_role=_text_field(body, "userType") or "",
    )
    payload = {"success": True}
    if reply is not None:
        payload["aiResponse"] = reply
    return web.json_response(payload)


@routes.post("/api/users/register")
async def register(request: web.Request) -> web.Response:
    body = await _json_body(request)
    token, user = await _ctx(request).accounts.register(
        email=_text_field(body, "email"),
        password=_text_field(body, "password"),
        name=_text_field(body, "name"),
        phone=_text_field(body, "phone"),
        location=_text_field(body, "location"),
    )
    return web.json_response({"success": True, "token": token, "user": user})


@routes.post("/api/users/login")
async def login(request: web.Request) -> web.Response:
    body = await _json_body(request)
    token, user = await _ctx(request).accounts.login(
        email=_text_field(body, "email"),
        password=_text_field(body, "password"),
    )
    return web.json_response({"success": True, "token": token, "user": user})
