"""Read-only summaries: the dashboard figures and the reports document."""

from typing import Any

from quantor.data import DataAccessLayer
from quantor.models import DashboardData
from quantor.resources.keys import DASHBOARD, REPORTS


class DashboardService:
    """Aggregates computed by the server. Never written to directly."""

    def __init__(self, dal: DataAccessLayer):
        self._dal = dal

    async def get(self) -> DashboardData:
        data = await self._dal.fetch(
            DASHBOARD,
            failure_message="Error loading dashboard. Try again.",
        )
        return self._dal.parse_response(
            DASHBOARD,
            data or {},
            DashboardData.model_validate,
            failure_message="Error loading dashboard. Try again.",
        )

    async def reports(self) -> dict[str, Any]:
        data = await self._dal.fetch(
            REPORTS,
            failure_message="Error loading reports. Try again.",
        )
        return data if isinstance(data, dict) else {"items": data}
