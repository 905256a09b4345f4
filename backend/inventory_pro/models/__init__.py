from .inventory import InventoryItem, StockChange, derive_status
from .sales import Sale, SaleLine, ProductPopularity
from .losses import Loss
from .stats import PersistedCounters, DerivedMetrics, StatsSnapshot
from .settings import StoreSettings
from .auth import User, Actor
from .activity import ActivityLogEntry

__all__ = [
    'InventoryItem', 'StockChange', 'derive_status',
    'Sale', 'SaleLine', 'ProductPopularity',
    'Loss',
    'PersistedCounters', 'DerivedMetrics', 'StatsSnapshot',
    'StoreSettings',
    'User', 'Actor',
    'ActivityLogEntry',
]
