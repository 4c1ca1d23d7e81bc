"""
naaz — storefront services for the Naaz Book Depot.

    from naaz import cache as C        # Multi-tier caching
    from naaz import monitoring as M   # Logging and error forwarding
    from naaz import saga as S         # Compensating transactions
    from naaz import checkout as K     # Cart to order
    from naaz import validation as V   # Form schemas
"""

from naaz import saga
from naaz import cache
from naaz import lift
from naaz import backend
from naaz import monitoring
from naaz import checkout
from naaz import orders
from naaz import catalog
from naaz import notifications
from naaz import validation
from naaz._types import (
    Lazy,
    Pure,
    Fallible,
    Row,
    LCR,
    NoError,
)

__version__ = "0.1.0"

__all__ = (
    "saga",
    "cache",
    "lift",
    "backend",
    "monitoring",
    "checkout",
    "orders",
    "catalog",
    "notifications",
    "validation",
    "Lazy",
    "Pure",
    "Fallible",
    "Row",
    "LCR",
    "NoError",
)
