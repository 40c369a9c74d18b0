"""Tests for the employee directory and the employee_lookup tool."""

import pytest

from hrbot.employees import EmployeeDirectory
from hrbot.tools.employee_lookup import EmployeeLookupTool


@pytest.fixture
def tool(directory) -> EmployeeLookupTool:
    return EmployeeLookupTool(directory=directory, result_limit=10)


# ---------------------------------------------------------------------------
# EmployeeDirectory
# ---------------------------------------------------------------------------


class TestSearches:
    def test_loads_all_rows(self, directory):
        assert len(directory) == 12

    def test_name_search_exact_match_first(self, directory):
        results = directory.search_by_name("sarah johnson")
        assert results[0]["employee_id"] == "1002"

    def test_name_search_partial(self, directory):
        ids = [e["employee_id"] for e in directory.search_by_name("john")]
        # First name "John" and last name "Johnson"
        assert set(ids) == {"1001", "1002"}

    def test_search_by_id(self, directory):
        assert directory.search_by_id(1004)["first_name"] == "Emily"
        assert directory.search_by_id("9999") is None

    def test_search_by_email_case_insensitive(self, directory):
        assert directory.search_by_email("David.Lee@TechCorp.com")["employee_id"] == "1008"

    def test_search_by_department(self, directory):
        ids = {e["employee_id"] for e in directory.search_by_department("engineering")}
        assert ids == {"1001", "1002", "1008"}

    def test_search_by_supervisor(self, directory):
        ids = {e["employee_id"] for e in directory.search_by_supervisor("Linda Park")}
        assert ids == {"1003", "1005", "1007", "1010"}

    def test_search_multiple_intersects(self, directory):
        results = directory.search_multiple(department="Engineering", location="Remote")
        assert [e["employee_id"] for e in results] == ["1008"]


class TestSmartSearch:
    @pytest.mark.parametrize(
        ("query", "search_type", "first_id"),
        [
            ("1001", "employee_id", "1001"),
            ("emily.davis@techcorp.com", "email", "1004"),
            ("Emily Davis", "name", "1004"),
            ("Finance", "department", "1009"),
            ("Financial Analyst", "job_title", "1009"),
            ("laur", "name_partial", "1009"),
        ],
    )
    def test_detects_query_type(self, directory, query, search_type, first_id):
        employees, detected = directory.smart_search(query)
        assert detected == search_type
        assert employees[0]["employee_id"] == first_id

    def test_no_match(self, directory):
        assert directory.smart_search("zzzz") == ([], "unknown")


class TestDerivedViews:
    def test_vacation_balance(self, directory):
        balance = directory.get_vacation_balance("1001")
        assert balance["name"] == "John Smith"
        assert balance["vacation_balance"] == 15.0
        assert balance["sick_balance"] == 8.0

    def test_vacation_after_leave_insufficient(self, directory):
        result = directory.calculate_vacation_after_leave("1004", 15)
        assert result["remaining_balance"] == -3
        assert result["sufficient_balance"] is False

    def test_benefits_info(self, directory):
        benefits = directory.get_benefits_info("1011")
        assert benefits["benefits_eligible"] == "No"
        assert benefits["health_insurance"] == ""

    def test_performance_info(self, directory):
        info = directory.get_performance_info("1008")
        assert info["performance_rating"] == "Meets Expectations"

    def test_unknown_employee_views(self, directory):
        assert directory.get_vacation_balance("0") is None
        assert directory.get_benefits_info("0") is None
        assert directory.calculate_vacation_after_leave("0", 1) is None

    def test_department_stats(self, directory):
        stats = directory.get_department_stats()
        assert stats["Engineering"]["total_employees"] == 3
        assert stats["Customer Support"]["part_time"] == 1

    def test_display_excludes_unlisted_columns(self):
        record = {"employee_id": "1", "first_name": "Ann", "last_name": "Lee", "salary": "90000"}
        display = EmployeeDirectory.format_for_display(record)
        assert display["name"] == "Ann Lee"
        assert "salary" not in display
        assert "90000" not in display.values()


# ---------------------------------------------------------------------------
# EmployeeLookupTool
# ---------------------------------------------------------------------------


async def test_tool_auto_search(tool):
    result = await tool.execute(query="John Smith")
    assert result.success
    assert result.data["search_type"] == "name"
    assert result.data["results"][0]["name"] == "John Smith"
    assert result.data["results"][0]["supervisor"] == "Sarah Johnson"
    assert result.data["limited"] is False


async def test_tool_explicit_type(tool):
    result = await tool.execute(query="1007", type="id")
    assert result.data["count"] == 1
    assert result.data["results"][0]["job_title"] == "HR Director"


async def test_tool_no_results_is_success(tool):
    result = await tool.execute(query="nobody@example.com", type="email")
    assert result.success
    assert result.data["count"] == 0
    assert result.data["results"] == []


@pytest.mark.parametrize("search_type", ["auto", "department", "name"])
async def test_tool_blank_query_rejected(tool, search_type):
    result = await tool.execute(query="   ", type=search_type)
    assert not result.success
    assert result.error == "Query parameter is required"


def test_blank_department_matches_nothing(directory):
    assert directory.search_by_department(" ") == []


async def test_tool_result_limit(directory):
    tool = EmployeeLookupTool(directory=directory, result_limit=2)
    result = await tool.execute(query="Engineering", type="department")
    assert result.data["count"] == 3
    assert len(result.data["results"]) == 2
    assert result.data["limited"] is True
    assert result.data["metadata"] == {"total_found": 3, "showing": 2, "search_method": "department"}


async def test_tool_missing_data_file(tmp_path):
    tool = EmployeeLookupTool(data_path=tmp_path / "missing.csv")
    result = await tool.execute(query="John")
    assert not result.success
    assert result.error == "Employee data not loaded"


async def test_tool_loads_csv_lazily(tmp_path):
    path = tmp_path / "staff.csv"
    path.write_text("employee_id,first_name,last_name\n7,Ann,Lee\n", encoding="utf-8")
    tool = EmployeeLookupTool(data_path=path)
    result = await tool.execute(query="7", type="id")
    assert result.data["results"][0]["name"] == "Ann Lee"


async def test_tool_benefits_helper(tool):
    result = await tool.get_benefits_info("1001")
    assert result.data["benefits"]["retirement_plan"] == "401k 6% match"
    missing = await tool.get_benefits_info("0")
    assert missing.error == "Employee not found"


async def test_tool_vacation_helper(tool):
    result = await tool.get_vacation_balance("1002")
    assert result.data["balance"]["vacation_balance"] == 22.0
