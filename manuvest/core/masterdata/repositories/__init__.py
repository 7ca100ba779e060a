"""Master data repositories package."""
from .master_data_repository import MasterDataRepository

__all__ = ['MasterDataRepository']
