"""
Diagnostic landing page.

Any request that no other route claims gets a small HTML page showing the
first rows of the comments table. Handy for checking that the service can
reach its database; not part of the API contract.
"""

import html
import json

from fastapi import APIRouter
from fastapi.encoders import jsonable_encoder
from fastapi.responses import HTMLResponse

from ..dependencies import CommentRepositoryDep

router = APIRouter()

FALLBACK_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]

PAGE_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
  <head>
    <meta charset="UTF-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1.0" />
    <title>Pool Schedule API</title>
  </head>
  <body>
    <main>
      <h1>Pool Schedule API</h1>
      <p>Sample rows from the comments table:</p>
      <pre><code>{content}</code></pre>
    </main>
  </body>
</html>
"""


def render_html(content: str) -> str:
    """Embed pre-formatted text in the diagnostic page."""
    return PAGE_TEMPLATE.format(content=html.escape(content))


@router.api_route("/{path:path}", methods=FALLBACK_METHODS, include_in_schema=False)
async def fallback(path: str, comments: CommentRepositoryDep) -> HTMLResponse:
    rows = comments.sample(limit=3)
    return HTMLResponse(render_html(json.dumps(jsonable_encoder(rows), indent=2)))
