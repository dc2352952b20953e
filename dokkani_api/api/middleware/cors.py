"""CORS pre-flight responses for the public API endpoints.

Browser pre-flights carrying Origin and Access-Control-Request-Method are
answered by Starlette's CORSMiddleware. Bare OPTIONS requests (mobile
webviews, uptime probes) reach the routes and are answered here.
"""

from fastapi import Response, status

ALLOWED_HEADERS = "Content-Type, Authorization"


def preflight_response(methods: list[str]) -> Response:
    """Build an empty 200 response advertising the endpoint's methods.

    Args:
        methods: HTTP methods the endpoint accepts, OPTIONS excluded.

    Returns:
        Response: Pre-flight response with permissive CORS headers.
    """
    return Response(
        status_code=status.HTTP_200_OK,
        headers={
            "Access-Control-Allow-Origin": "*",
            "Access-Control-Allow-Methods": ",".join([*methods, "OPTIONS"]),
            "Access-Control-Allow-Headers": ALLOWED_HEADERS,
        },
    )
