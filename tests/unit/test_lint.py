"""
Tests for the Apps Script linter.
"""

from pathlib import Path

import pytest

from devtools.lint import fix_source, lint_source, lint_tree, render_markdown

HEADER = """/**
 * Title: Label Export
 * Service: Gmail
 * Purpose: Export label stats to a sheet
 * Created: 2024-01-15
 * Updated: 2024-02-01
 * Author: Sam Example
 * Contact: sam@example.com
 * License: MIT
 */

/*
Script Summary:
- Purpose: Export label stats to a sheet
*/
"""

CLEAN = HEADER + """
/**
 * Entry point.
 */
function exportLabels() {
  const labelNames = [];
  return labelNames;
}
"""


def _lines(issues: list, rule: str) -> list[int]:
    return [i.line for i in issues if i.rule == rule]


def test_clean_script() -> None:
    assert lint_source(CLEAN) == []


def test_missing_header_and_summary() -> None:
    rules = {i.rule for i in lint_source("function main() {}\n")}
    assert rules == {"header-required", "summary-required"}


class TestHeader:

    def test_missing_field(self) -> None:
        issues = lint_source(CLEAN.replace(" * License: MIT\n", ""))
        assert [(i.rule, i.severity) for i in issues] == [("header-license", "error")]

    def test_unknown_service(self) -> None:
        issues = lint_source(CLEAN.replace("Service: Gmail", "Service: Mail"))
        assert [i.rule for i in issues] == ["header-service-invalid"]
        assert "'Mail'" in issues[0].message

    @pytest.mark.parametrize("date", ["15/01/2024", "2024-1-15", "2024-01-15 (approx)"])
    def test_bad_date(self, date: str) -> None:
        issues = lint_source(CLEAN.replace("Created: 2024-01-15", f"Created: {date}"))
        assert [i.message for i in issues] == ["Created date must be YYYY-MM-DD"]


class TestFunctions:

    def test_undocumented_function(self) -> None:
        text = CLEAN + "\nfunction helper() {\n}\n"
        line = text.split("\n").index("function helper() {") + 1

        issues = lint_source(text)

        assert _lines(issues, "function-docs-required") == [line]
        assert _lines(issues, "function-naming") == []

    def test_naming(self) -> None:
        text = CLEAN + "/** Doc. */\nfunction Export_labels() {\n}\n"

        issues = lint_source(text)

        assert [i.rule for i in issues] == ["function-naming"]
        assert issues[0].severity == "warning"

    def test_variable_naming(self) -> None:
        text = CLEAN + "const MAX_ROWS = 5;\nconst row_count = 0;\n"
        issues = lint_source(text)
        assert [(i.rule, i.severity) for i in issues] == [("variable-naming", "info")]
        assert "row_count" in issues[0].message


class TestFormatting:

    def test_var(self) -> None:
        text = CLEAN + "var total = 0;\n"
        assert _lines(lint_source(text), "no-var") == [len(text.split("\n")) - 1]

    def test_variable_named_var_prefix(self) -> None:
        assert _lines(lint_source(CLEAN + "let variance = 0;\n"), "no-var") == []

    def test_line_length(self) -> None:
        issues = lint_source(CLEAN + "// " + "x" * 98 + "\n")
        assert [i.message for i in issues] == ["Line exceeds 100 characters (101)"]

    def test_trailing_whitespace(self) -> None:
        issues = lint_source(CLEAN.replace("return labelNames;", "return labelNames;  "))
        assert [i.rule for i in issues] == ["no-trailing-spaces"]

    def test_odd_indent(self) -> None:
        issues = lint_source(CLEAN.replace("  return labelNames;", "   return labelNames;"))
        assert [i.rule for i in issues] == ["indent"]

    def test_comment_continuation_not_indent(self) -> None:
        assert _lines(lint_source(CLEAN), "indent") == []


def test_fix_source() -> None:
    text = "var a = 1;  \n  var b = 2;\nlet variance = 3;\n"
    assert fix_source(text) == "let a = 1;\n  let b = 2;\nlet variance = 3;\n"


class TestLintTree:

    def test_scans_gs_only(self, tmp_path: Path) -> None:
        (tmp_path / "app").mkdir()
        (tmp_path / "app" / "Code.gs").write_text(CLEAN)
        (tmp_path / "app" / "Code.txt").write_text("var ignored;")
        (tmp_path / "node_modules").mkdir()
        (tmp_path / "node_modules" / "Vendor.gs").write_text("var ignored;")

        report = lint_tree(tmp_path)

        assert report.files_checked == 1
        assert report.issues == []
        assert report.to_dict()["errors"] == 0

    def test_reports_paths_relative(self, tmp_path: Path) -> None:
        (tmp_path / "app").mkdir()
        (tmp_path / "app" / "Bad.gs").write_text("var x = 1;\n")

        report = lint_tree(tmp_path)

        assert {i.path for i in report.issues} == {"app/Bad.gs"}
        assert report.count("error") == 3
        assert report.fixed == []

    def test_fix_rewrites_files(self, tmp_path: Path) -> None:
        (tmp_path / "Code.gs").write_text(CLEAN + "var total = 0;  \n")
        (tmp_path / "Clean.gs").write_text(CLEAN)

        report = lint_tree(tmp_path, fix=True)

        assert report.fixed == ["Code.gs"]
        assert (tmp_path / "Code.gs").read_text() == CLEAN + "let total = 0;\n"
        assert report.issues == []


def test_markdown(tmp_path: Path) -> None:
    (tmp_path / "Bad.gs").write_text("var x = 1;\n")

    markdown = render_markdown(lint_tree(tmp_path))

    assert markdown.startswith("# Apps Script Lint Report")
    assert "- Errors: 3" in markdown
    assert "## `Bad.gs`" in markdown
    assert "- 1: error Use const or let instead of var (no-var)" in markdown


def test_markdown_no_issues(tmp_path: Path) -> None:
    assert "No issues found." in render_markdown(lint_tree(tmp_path))
