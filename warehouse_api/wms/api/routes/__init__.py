"""
API route modules for the warehouse domain.

This package contains subrouters for:
- Catalog: products and categories
- Locations: warehouse locations and capacity checks
- Inventory: stock receipt, adjustment, relocation and FIFO allocation
- Orders: order creation, put-away and status changes
- Partners: suppliers, customers and credit limits
- Dashboard: metrics and customer analytics
- Reports: CSV/XLSX/PDF exports

Routers are included from wms.api.main (under the /api/v1 prefix).
"""
