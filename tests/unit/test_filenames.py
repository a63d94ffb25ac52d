"""
Tests for the filename standardizer.
"""

from pathlib import Path

import pytest

from devtools.filenames import render_markdown, standardize_filenames, standardize_name


@pytest.mark.parametrize("filename,expected", [
    ("export-labels.gs", "export-labels.gs"),
    ("Gmail Label Exporter.gs", "export-gmail-label.gs"),
    ("sheetFormatter.gs", "format-sheet.gs"),
    ("label_export.gs", "export-label.gs"),
    ("drive-files-list.gs", "list-drive-files.gs"),
    ("v2-Code.gs", "process-main.gs"),
    ("V3.report.gs", "report.gs"),
    ("Q&A (draft)?.gs", "qanda-draft.gs"),
    ("folder tree.gs", "generate-folder-tree.gs"),
    ("--Notes--.gs", "notes.gs"),
])
def test_standardize_name(filename: str, expected: str) -> None:
    assert standardize_name(filename) == expected


def test_service_prefix_dropped_in_matching_folder() -> None:
    assert standardize_name("gmail-label-export.gs", "gmail") == "export-label.gs"
    assert standardize_name("gmail-label-export.gs", "Gmail") == "export-label.gs"
    assert standardize_name("gmail-label-export.gs", "drive") == "export-gmail-label.gs"


def test_standard_name_is_stable() -> None:
    once = standardize_name("Calendar Event Syncer.gs")
    assert standardize_name(once) == once


def _touch(root: Path, relative: str, content: str = "") -> Path:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


class TestStandardizeFilenames:

    def test_dry_run_renames_nothing(self, tmp_path: Path) -> None:
        _touch(tmp_path, "gmail/labelExporter.gs")

        report = standardize_filenames(tmp_path)

        assert report.dry_run is True
        assert [(r.old_name, r.new_name, r.location) for r in report.renamed] == [
            ("labelExporter.gs", "export-label.gs", "gmail"),
        ]
        assert (tmp_path / "gmail" / "labelExporter.gs").exists()

    def test_apply(self, tmp_path: Path) -> None:
        _touch(tmp_path, "sheets/Sheets Data Sorter.gs", "body")
        _touch(tmp_path, "sheets/sort-data.gs.txt")
        _touch(tmp_path, "export-labels.gs")

        report = standardize_filenames(tmp_path, dry_run=False)

        assert [r.new_name for r in report.renamed] == ["sort-data.gs"]
        assert (tmp_path / "sheets" / "sort-data.gs").read_text() == "body"
        assert not (tmp_path / "sheets" / "Sheets Data Sorter.gs").exists()
        assert (tmp_path / "export-labels.gs").exists()

    def test_existing_target_skipped(self, tmp_path: Path) -> None:
        _touch(tmp_path, "Label Export.gs", "old")
        _touch(tmp_path, "export-label.gs", "new")

        report = standardize_filenames(tmp_path, dry_run=False)

        assert report.renamed == []
        assert [(r.old_name, r.location) for r in report.skipped] == [("Label Export.gs", ".")]
        assert (tmp_path / "Label Export.gs").read_text() == "old"
        assert (tmp_path / "export-label.gs").read_text() == "new"

    def test_skips_vendor_dirs(self, tmp_path: Path) -> None:
        _touch(tmp_path, "node_modules/pkg/Vendor Code.gs")
        assert standardize_filenames(tmp_path).renamed == []


def test_markdown(tmp_path: Path) -> None:
    _touch(tmp_path, "docs/docFormatter.gs")

    markdown = render_markdown(standardize_filenames(tmp_path, dry_run=False))

    assert markdown.startswith("# Filename Standardization Report")
    assert "- Files renamed: 1" in markdown
    assert "| docFormatter.gs | format-doc.gs | docs |" in markdown


def test_markdown_nothing_to_do(tmp_path: Path) -> None:
    report = standardize_filenames(tmp_path)
    markdown = render_markdown(report)
    assert "- Files to rename: 0" in markdown
    assert "All filenames already standard." in markdown
