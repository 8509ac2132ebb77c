"""
ORM models for catalog, inventory, partners, orders and picking.

Importing this package ensures model classes are registered with the Base
metadata for Alembic and runtime usage.
"""

from .catalog import (  # noqa: F401
    Category,
    Product,
)
from .partners import (  # noqa: F401
    CommunicationLog,
    Customer,
    CustomerPrice,
    Supplier,
)
from .orders import (  # noqa: F401
    Order,
    OrderItem,
    ShipmentTracking,
)
from .inventory import (  # noqa: F401
    InventoryRow,
    StockAllocation,
    StockAllocationLine,
    WarehouseLocation,
)
from .fulfillment import (  # noqa: F401
    PickList,
    PickListItem,
)
