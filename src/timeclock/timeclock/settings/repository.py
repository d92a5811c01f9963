from __future__ import annotations

from typing import Optional, Protocol

from .model import CompanySettings


class SettingsRepository(Protocol):
    def get_for_company(self, company_id: str) -> Optional[CompanySettings]:
        raise NotImplementedError

    def save(self, settings: CompanySettings) -> None:
        """Insert or replace the tenant row."""

        raise NotImplementedError
