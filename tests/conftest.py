"""Pytest configuration and fixtures."""

import contextlib
import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer


@pytest.fixture
def sample_html():
    """Sample HTML for testing."""
    return """
    <!DOCTYPE html>
    <html>
    <head>
        <title>Test Page</title>
    </head>
    <body>
        <h1>Welcome</h1>
        <a href="/page1">Page 1</a>
        <a href="/page2#section">Page 2</a>
        <a href="/page1">Page 1 again</a>
        <a href="https://external.com">External</a>
        <a href="mailto:someone@example.com">Mail</a>
        <a href="javascript:void(0)">Script</a>
        <a href="">Empty</a>
    </body>
    </html>
    """


@pytest.fixture
def sample_url():
    """Sample base URL for testing."""
    return "https://example.com"


def _html_page(*hrefs: str):
    """Handler serving an HTML page linking to ``hrefs``."""
    body = "<html><body>" + "".join(f'<a href="{h}">{h}</a>' for h in hrefs) + "</body></html>"

    async def handler(request):
        return web.Response(text=body, content_type="text/html")

    return handler


@pytest.fixture
def serve():
    """
    Factory for an in-process HTTP site.

    Usage: ``async with serve({"/": handler}) as server`` where each handler
    also answers HEAD. ``server.hits`` counts requests per path.
    """

    @contextlib.asynccontextmanager
    async def _serve(routes):
        hits: dict[str, int] = {}

        @web.middleware
        async def count_hits(request, handler):
            hits[request.path] = hits.get(request.path, 0) + 1
            return await handler(request)

        app = web.Application(middlewares=[count_hits])
        for path, handler in routes.items():
            app.router.add_route("*", path, handler)

        server = TestServer(app)
        await server.start_server()
        server.hits = hits
        try:
            yield server
        finally:
            await server.close()

    return _serve


@pytest.fixture
def html_page():
    """Factory for handlers serving an HTML page with the given links."""
    return _html_page
