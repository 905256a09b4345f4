from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

DEFAULT_STORE_NAME = "Inventory Pro Store"
DEFAULT_STORE_ADDRESS = "123 Main Street, City, State, 12345"
DEFAULT_STORE_PHONE = "(555) 123-4567"
DEFAULT_THANK_YOU_MESSAGE = "Thank you for shopping with us!"


@dataclass
class StoreSettings:
    """
    Singleton store settings (settings.json holds a one-element list).

    next_transaction_id is a legacy counter; sale ids are generated by a
    same-day scan of sales.json and never read it.
    """
    store_name: str = DEFAULT_STORE_NAME
    store_address: str = DEFAULT_STORE_ADDRESS
    store_phone: str = DEFAULT_STORE_PHONE
    thank_you_message: str = DEFAULT_THANK_YOU_MESSAGE
    store_logo: Optional[str] = None
    next_transaction_id: int = 1

    @classmethod
    def from_dict(cls, data: dict) -> "StoreSettings":
        defaults = cls()
        return cls(
            store_name=data.get("storeName", defaults.store_name),
            store_address=data.get("storeAddress", defaults.store_address),
            store_phone=data.get("storePhone", defaults.store_phone),
            thank_you_message=data.get("thankYouMessage", defaults.thank_you_message),
            store_logo=data.get("storeLogo"),
            next_transaction_id=data.get("nextTransactionId", defaults.next_transaction_id),
        )

    def to_dict(self) -> dict:
        out = {
            "storeName": self.store_name,
            "storeAddress": self.store_address,
            "storePhone": self.store_phone,
            "thankYouMessage": self.thank_you_message,
            "nextTransactionId": self.next_transaction_id,
        }
        if self.store_logo is not None:
            out["storeLogo"] = self.store_logo
        return out
