from __future__ import annotations

from decimal import Decimal
from typing import Optional, Protocol


class PayTypeCatalog(Protocol):
    def rate_for(self, *, tenant_id: str, pay_type_code: str) -> Optional[Decimal]:
        """Hourly rate for an active pay type, or None when the code is unknown."""

        raise NotImplementedError
