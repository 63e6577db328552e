"""Ordering bounded context — order pricing and fulfillment.

Owns the Order aggregate: totals frozen at checkout, and the fulfillment
state machine driven by payment gateway and shipping carrier outcomes.
"""

import structlog
from protean.domain import Domain

ordering = Domain(name="ordering")

logger = structlog.get_logger(__name__)
