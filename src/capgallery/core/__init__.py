"""Core gallery pipeline for Caption Gallery.

Architecture Overview
---------------------
The core module follows the data flow of one gallery load:

1. **Configuration Layer** (config.py):
   - Environment-based configuration using Pydantic Settings
   - All settings prefixed with CAPGALLERY_ in .env files

2. **Remote Store Layer** (store.py, reader.py):
   - ``StoreClient``: range reads and user lookups over HTTP (httpx)
   - ``BulkTableReader``: reads a whole table through the per-request row cap

3. **Aggregation Layer** (gallery.py):
   - merge captions onto images, expand into display items, rank and shuffle

4. **Presentation Helpers** (pagination.py):
   - page slicing and the page-navigation window

5. **Orchestration** (session.py, pipeline.py):
   - ``SessionGate``: explicit authenticated-session lifecycle
   - ``GalleryPipeline``: reads both tables concurrently and builds the items
"""

from capgallery.core.config import GalleryConfig, config
from capgallery.core.gallery import build_display_items, expand, merge, order
from capgallery.core.pagination import PAGE_GAP, page_window, paginate, total_pages
from capgallery.core.pipeline import GalleryPipeline
from capgallery.core.reader import BulkTableReader
from capgallery.core.session import LoginSuperseded, SessionContext, SessionGate
from capgallery.core.store import AuthError, RemoteReadError, StoreClient

__all__ = [
    "AuthError",
    "BulkTableReader",
    "GalleryConfig",
    "GalleryPipeline",
    "LoginSuperseded",
    "PAGE_GAP",
    "RemoteReadError",
    "SessionContext",
    "SessionGate",
    "StoreClient",
    "build_display_items",
    "config",
    "expand",
    "merge",
    "order",
    "page_window",
    "paginate",
    "total_pages",
]
