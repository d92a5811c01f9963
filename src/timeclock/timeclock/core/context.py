from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .enums import Role


@dataclass(frozen=True)
class Actor:
    """Authenticated caller: a browser employee, a kiosk session or an admin.

    Session issuance is outside this package; controllers build an Actor
    from whatever the session layer stored.
    """

    company_id: str
    user_id: str
    role: Role = Role.EMPLOYEE


@dataclass(frozen=True)
class RequestMetadata:
    ip: Optional[str] = None
    user_agent: Optional[str] = None


NO_METADATA = RequestMetadata()
