"""Back office FastAPI application — order pricing and fulfillment.

Admin-facing HTTP surface over the ordering domain. Each request under
``/orders`` or ``/payments`` runs inside the ordering domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

from ordering.utils.logging import configure_logging

configure_logging()

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# Domains are initialized at module level so uvicorn workers share them.
# PROTEAN_ENV controls which config overlay is applied.
from ordering.domain import ordering  # noqa: E402

ordering.init()

from ordering.api.application import create_app  # noqa: E402

app = create_app()
