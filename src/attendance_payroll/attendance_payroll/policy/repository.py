from __future__ import annotations

from typing import Optional, Protocol

from .model import Policy


class PolicyRepository(Protocol):
    """Read-only source of company policy rows.

    Editing policy is owned by the admin screens, not by this engine.
    """

    def load(self, company_id: int) -> Optional[Policy]:
        raise NotImplementedError
