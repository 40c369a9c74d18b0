"""employee_lookup — search the employee directory."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Literal

from pydantic import Field

from hrbot.config import settings
from hrbot.employees import EmployeeDirectory
from hrbot.errors import ToolExecutionError
from hrbot.tools.base import BaseTool, ToolParams, ToolResult

logger = logging.getLogger(__name__)

SearchType = Literal["auto", "name", "id", "email", "department", "job_title"]


class EmployeeLookupParams(ToolParams):
    query: str = Field(
        min_length=1,
        description="The search query (name, ID, email, department, or job title)",
    )
    type: SearchType = Field(
        default="auto",
        description='The type of search to perform. Use "auto" for smart detection.',
    )


class EmployeeLookupTool(BaseTool):
    """Searches the CSV-backed employee directory.

    The directory is loaded on first use unless one is passed in.
    """

    name = "employee_lookup"
    description = "Searches for employee information by name, ID, email, department, or job title"
    params_model = EmployeeLookupParams

    def __init__(
        self,
        directory: EmployeeDirectory | None = None,
        data_path: Path | None = None,
        result_limit: int | None = None,
    ) -> None:
        self._directory = directory
        self._data_path = data_path or settings.employee_data_path
        self.result_limit = result_limit or settings.employee_result_limit

    @property
    def directory(self) -> EmployeeDirectory:
        if self._directory is None:
            try:
                self._directory = EmployeeDirectory.from_csv(self._data_path)
            except OSError as exc:
                logger.error("Could not load employee data from %s: %s", self._data_path, exc)
                msg = "Employee data not loaded"
                raise ToolExecutionError(msg) from exc
        return self._directory

    async def execute(self, query: str, type: SearchType = "auto") -> ToolResult:  # noqa: A002
        try:
            employees, search_type = self._search(query, type)
        except ToolExecutionError as exc:
            return ToolResult(error=str(exc))

        formatted = [self.directory.format_for_display(e) for e in employees]
        shown = formatted[: self.result_limit]
        return ToolResult(
            data={
                "results": shown,
                "count": len(formatted),
                "search_type": search_type,
                "query": query,
                "limited": len(formatted) > self.result_limit,
                "metadata": {
                    "total_found": len(formatted),
                    "showing": len(shown),
                    "search_method": search_type,
                },
            }
        )

    def _search(self, query: str, search_type: str) -> tuple[list[dict], str]:
        # A blank needle would match every record.
        query = query.strip()
        if not query:
            msg = "Query parameter is required"
            raise ToolExecutionError(msg)
        directory = self.directory
        if search_type == "name":
            return directory.search_by_name(query), search_type
        if search_type == "id":
            employee = directory.search_by_id(query)
            return ([employee] if employee else []), search_type
        if search_type == "email":
            employee = directory.search_by_email(query)
            return ([employee] if employee else []), search_type
        if search_type == "department":
            return directory.search_by_department(query), search_type
        if search_type == "job_title":
            return directory.search_by_job_title(query), search_type
        return directory.smart_search(query)

    # -- Direct helpers (used by canned agent scenarios) -----------------------

    async def get_benefits_info(self, employee_id: str) -> ToolResult:
        try:
            benefits = self.directory.get_benefits_info(employee_id)
        except ToolExecutionError as exc:
            return ToolResult(error=str(exc))
        if benefits is None:
            return ToolResult(error="Employee not found")
        return ToolResult(data={"benefits": benefits, "employee_id": employee_id})

    async def get_vacation_balance(self, employee_id: str) -> ToolResult:
        try:
            balance = self.directory.get_vacation_balance(employee_id)
        except ToolExecutionError as exc:
            return ToolResult(error=str(exc))
        if balance is None:
            return ToolResult(error="Employee not found")
        return ToolResult(data={"balance": balance, "employee_id": employee_id})
