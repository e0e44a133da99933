"""
HTTP front end: a search form and ranked result links served with aiohttp.
"""

import asyncio
import html
import logging
import threading
from datetime import datetime
from string import Template
from urllib.parse import urlencode

from aiohttp import web

from ..index.searcher import QuerySearcher

TITLE = "Search Engine"

PAGE_TEMPLATE = Template("""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>$title</title>
</head>
<body>
  <h1>$title</h1>
  <p>Served by $thread at $updated</p>
  <form method="post" action="$action">
    <input type="text" name="search" value="$query" placeholder="Search">
    <button type="submit">Search</button>
  </form>
  $summary
  <ol>
$results
  </ol>
</body>
</html>
""")

RESULT_TEMPLATE = Template('    <li><a href="$href">$text</a></li>')

SEARCHER_KEY = web.AppKey('searcher', QuerySearcher)
EXACT_KEY = web.AppKey('exact', bool)
MAX_RESULTS_KEY = web.AppKey('max_results', int)
SEARCH_LOCK_KEY = web.AppKey('search_lock', asyncio.Lock)

logger = logging.getLogger(__name__)


def get_date() -> str:
    return datetime.now().strftime("%I:%M %p on %A, %B %d, %Y")


def render_page(query: str, locations, action: str) -> str:
    """Render the search page with the given result locations (already capped)."""
    results = '\n'.join(
        RESULT_TEMPLATE.substitute(href=html.escape(location, quote=True),
                                   text=html.escape(location))
        for location in locations
    )

    if not query:
        summary = ''
    elif locations:
        summary = f'<p>Top results for "{html.escape(query)}"</p>'
    else:
        summary = f'<p>No results for "{html.escape(query)}"</p>'

    return PAGE_TEMPLATE.substitute(
        title=TITLE,
        thread=html.escape(threading.current_thread().name),
        updated=get_date(),
        action=html.escape(action or '/search', quote=True),
        query=html.escape(query, quote=True),
        summary=summary,
        results=results
    )


async def handle_index(request: web.Request) -> web.StreamResponse:
    raise web.HTTPFound('/search')


async def handle_get(request: web.Request) -> web.Response:
    """Show the form and the results of the query in ?q=, if any."""
    query = request.query.get('q', '').strip()
    searcher = request.app[SEARCHER_KEY]

    locations = []
    if query:
        key = searcher.query_key(query)
        results = searcher.get_results(key)
        locations = [result.location for result in results[:request.app[MAX_RESULTS_KEY]]]

    page = render_page(query, locations, request.path)
    return web.Response(text=page, content_type='text/html')


async def handle_post(request: web.Request) -> web.StreamResponse:
    """Run the submitted query, then redirect to its results."""
    data = await request.post()
    query = str(data.get('search', '')).strip()

    if query:
        searcher = request.app[SEARCHER_KEY]
        exact = request.app[EXACT_KEY]
        loop = asyncio.get_running_loop()

        # the searcher blocks on the work queue barrier, keep it off the loop
        async with request.app[SEARCH_LOCK_KEY]:
            await loop.run_in_executor(None, searcher.search, query, exact)
        logger.info(f"Searched '{query}' ({'exact' if exact else 'partial'})")

    location = request.path
    if query:
        location += '?' + urlencode({'q': query})
    raise web.HTTPSeeOther(location)


async def _create_search_lock(app: web.Application):
    # created on the serving loop
    app[SEARCH_LOCK_KEY] = asyncio.Lock()


def create_app(searcher: QuerySearcher, exact: bool = False, max_results: int = 10) -> web.Application:
    """Build the search application around a searcher."""
    app = web.Application()
    app[SEARCHER_KEY] = searcher
    app[EXACT_KEY] = exact
    app[MAX_RESULTS_KEY] = max(1, max_results)
    app.on_startup.append(_create_search_lock)

    app.router.add_get('/', handle_index)
    app.router.add_get('/search', handle_get)
    app.router.add_post('/search', handle_post)
    return app


def run_server(app: web.Application, host: str = '0.0.0.0', port: int = 8080):
    """Serve the application until interrupted."""
    logger.info(f"Serving search on http://{host}:{port}/search")
    web.run_app(app, host=host, port=port, print=None)
