"""
Aplicación aiohttp: middlewares y armado de rutas.
"""

import structlog
from aiohttp import web

from vitrina.api.routes import CONTEXT, routes
from vitrina.context import AppContext
from vitrina.errors import VitrinaError

logger = structlog.get_logger()

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET,POST,OPTIONS",
    "Access-Control-Allow-Headers": "Authorization,Content-Type",
}

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
}

# Margen para campos de texto y boundaries del multipart
_FORM_OVERHEAD_BYTES = 1024 * 1024


@web.middleware
async def headers_middleware(request: web.Request, handler) -> web.StreamResponse:
    """CORS y headers de seguridad en toda respuesta, incluidas las HTTPException."""
    if request.method == "OPTIONS":
        return web.Response(status=204, headers={**CORS_HEADERS, **SECURITY_HEADERS})
    try:
        response = await handler(request)
    except web.HTTPException as e:
        e.headers.update(CORS_HEADERS)
        e.headers.update(SECURITY_HEADERS)
        raise
    response.headers.update(CORS_HEADERS)
    response.headers.update(SECURITY_HEADERS)
    return response


@web.middleware
async def error_middleware(request: web.Request, handler) -> web.StreamResponse:
    """Traduce errores de dominio a JSON; ningún error sale del request."""
    try:
        return await handler(request)
    except VitrinaError as e:
        logger.warning(
            "Request fallido",
            method=request.method,
            path=request.path,
            kind=e.kind,
            error=e.message,
        )
        return web.json_response(e.to_dict(), status=e.status)
    except web.HTTPException:
        raise
    except Exception as e:
        logger.exception("Error inesperado", method=request.method, path=request.path)
        return web.json_response({"error": str(e), "kind": "InternalError"}, status=500)


def create_app(context: AppContext) -> web.Application:
    """Crea la aplicación HTTP con el contexto ya inicializado."""
    settings = context.settings
    app = web.Application(
        middlewares=[headers_middleware, error_middleware],
        client_max_size=(
            settings.max_images_per_listing * settings.max_image_bytes + _FORM_OVERHEAD_BYTES
        ),
    )
    app[CONTEXT] = context
    app.add_routes(routes)
    return app
