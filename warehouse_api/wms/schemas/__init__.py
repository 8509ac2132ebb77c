"""
Pydantic request and response models, one module per area: catalog,
inventory (locations, stock rows, allocations), orders, partners (with pricing
rules and communication logs), picking and reports.
common holds the health payload and the error envelope.
"""

from .common import ErrorResponse, HealthResponse  # noqa: F401
