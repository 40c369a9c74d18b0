"""Read-only employee directory loaded from a CSV export.

Records are plain dicts keyed by the CSV header. Compensation columns, if a
file happens to carry them, are never included in display output.
"""

from __future__ import annotations

import csv
import logging
import re
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

Employee = dict[str, str]

DISPLAY_FIELDS: dict[str, str] = {
    "employee_id": "employee_id",
    "email": "email",
    "department": "department",
    "job_title": "job_title",
    "supervisor": "supervisor_name",
    "employment_status": "employment_status",
    "hire_date": "hire_date",
    "employment_type": "employment_type",
    "location": "location",
    "phone": "phone",
    "emergency_contact": "emergency_contact",
    "emergency_phone": "emergency_phone",
    "vacation_balance": "vacation_balance",
    "sick_balance": "sick_balance",
    "personal_balance": "personal_balance",
    "benefits_eligible": "benefits_eligible",
    "performance_rating": "performance_rating",
    "next_review_date": "next_review_date",
}

BENEFIT_FIELDS = (
    "benefits_eligible",
    "health_insurance",
    "dental_insurance",
    "vision_insurance",
    "life_insurance",
    "disability_insurance",
    "retirement_plan",
)

_ID_PATTERN = re.compile(r"^\d+$")
_NAME_PATTERN = re.compile(r"^[A-Z][a-z]+ [A-Z][a-z]+")


def full_name(employee: Employee) -> str:
    return f"{employee.get('first_name', '')} {employee.get('last_name', '')}".strip()


def _balance(value: str | None) -> float:
    try:
        return float(value or 0)
    except ValueError:
        return 0.0


class EmployeeDirectory:
    """In-memory employee records with simple field searches."""

    def __init__(self, employees: list[Employee]) -> None:
        self.employees = employees

    @classmethod
    def from_csv(cls, path: Path) -> EmployeeDirectory:
        """Load every row of a CSV file with a header line."""
        with Path(path).open(newline="", encoding="utf-8") as f:
            employees = [dict(row) for row in csv.DictReader(f)]
        logger.info("Loaded %d employee records from %s", len(employees), path)
        return cls(employees)

    def __len__(self) -> int:
        return len(self.employees)

    # -- Searches ----------------------------------------------------------------

    def search_by_name(self, name: str) -> list[Employee]:
        """Partial, case-insensitive name match. Exact full-name matches come first."""
        term = name.lower().strip()
        exact: list[Employee] = []
        partial: list[Employee] = []
        for employee in self.employees:
            name_lower = full_name(employee).lower()
            if name_lower == term:
                exact.append(employee)
            elif (
                term in name_lower
                or term in employee.get("first_name", "").lower()
                or term in employee.get("last_name", "").lower()
            ):
                partial.append(employee)
        return exact + partial

    def search_by_id(self, employee_id: str | int) -> Employee | None:
        key = str(employee_id).strip()
        return next((e for e in self.employees if e.get("employee_id") == key), None)

    def search_by_email(self, email: str) -> Employee | None:
        key = email.lower().strip()
        return next((e for e in self.employees if e.get("email", "").lower() == key), None)

    def search_by_department(self, department: str) -> list[Employee]:
        return self._contains("department", department)

    def search_by_job_title(self, job_title: str) -> list[Employee]:
        return self._contains("job_title", job_title)

    def search_by_supervisor(self, supervisor_name: str) -> list[Employee]:
        return self._contains("supervisor_name", supervisor_name)

    def search_multiple(
        self,
        name: str | None = None,
        department: str | None = None,
        job_title: str | None = None,
        location: str | None = None,
    ) -> list[Employee]:
        """Intersect several criteria; omitted criteria do not filter."""
        results = list(self.employees)
        if name:
            matches = self.search_by_name(name)
            results = [e for e in results if e in matches]
        for field_name, value in (
            ("department", department),
            ("job_title", job_title),
            ("location", location),
        ):
            if value:
                results = [e for e in results if value.lower() in e.get(field_name, "").lower()]
        return results

    def smart_search(self, query: str) -> tuple[list[Employee], str]:
        """Guess what the query refers to. Returns (employees, search_type)."""
        query = query.strip()

        if _ID_PATTERN.match(query):
            employee = self.search_by_id(query)
            if employee:
                return [employee], "employee_id"

        if "@" in query:
            employee = self.search_by_email(query)
            if employee:
                return [employee], "email"

        if _NAME_PATTERN.match(query):
            employees = self.search_by_name(query)
            if employees:
                return employees, "name"

        for search_type, search in (
            ("department", self.search_by_department),
            ("job_title", self.search_by_job_title),
            ("name_partial", self.search_by_name),
        ):
            employees = search(query)
            if employees:
                return employees, search_type

        return [], "unknown"

    # -- Derived views -----------------------------------------------------------

    def get_vacation_balance(self, employee_id: str | int) -> dict[str, Any] | None:
        employee = self.search_by_id(employee_id)
        if employee is None:
            return None
        return {
            "employee_id": employee["employee_id"],
            "name": full_name(employee),
            "vacation_balance": _balance(employee.get("vacation_balance")),
            "sick_balance": _balance(employee.get("sick_balance")),
            "personal_balance": _balance(employee.get("personal_balance")),
        }

    def calculate_vacation_after_leave(
        self, employee_id: str | int, days_to_take: float
    ) -> dict[str, Any] | None:
        employee = self.search_by_id(employee_id)
        if employee is None:
            return None
        current = _balance(employee.get("vacation_balance"))
        remaining = current - days_to_take
        return {
            "employee_id": employee["employee_id"],
            "name": full_name(employee),
            "current_balance": current,
            "days_to_take": days_to_take,
            "remaining_balance": remaining,
            "sufficient_balance": remaining >= 0,
        }

    def get_benefits_info(self, employee_id: str | int) -> dict[str, Any] | None:
        employee = self.search_by_id(employee_id)
        if employee is None:
            return None
        info: dict[str, Any] = {"employee_id": employee["employee_id"], "name": full_name(employee)}
        info.update({field: employee.get(field, "") for field in BENEFIT_FIELDS})
        return info

    def get_performance_info(self, employee_id: str | int) -> dict[str, Any] | None:
        employee = self.search_by_id(employee_id)
        if employee is None:
            return None
        return {
            "employee_id": employee["employee_id"],
            "name": full_name(employee),
            "last_performance_review": employee.get("last_performance_review", ""),
            "performance_rating": employee.get("performance_rating", ""),
            "next_review_date": employee.get("next_review_date", ""),
        }

    def get_department_stats(self) -> dict[str, dict[str, int]]:
        departments: dict[str, dict[str, int]] = {}
        for employee in self.employees:
            stats = departments.setdefault(
                employee.get("department", ""),
                {"total_employees": 0, "full_time": 0, "part_time": 0, "active": 0},
            )
            stats["total_employees"] += 1
            if employee.get("employment_type") == "Full-time":
                stats["full_time"] += 1
            else:
                stats["part_time"] += 1
            if employee.get("employment_status") == "Active":
                stats["active"] += 1
        return departments

    @staticmethod
    def format_for_display(employee: Employee) -> dict[str, str]:
        """Whitelisted view of a record for the model and the UI."""
        display = {"name": full_name(employee)}
        for out_field, src_field in DISPLAY_FIELDS.items():
            display[out_field] = employee.get(src_field, "")
        return display

    def _contains(self, field_name: str, value: str) -> list[Employee]:
        needle = value.lower().strip()
        if not needle:
            return []
        return [e for e in self.employees if needle in e.get(field_name, "").lower()]
