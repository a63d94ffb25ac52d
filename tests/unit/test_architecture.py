"""
Architectural tests — enforce layer boundaries.

These tests verify that the codebase maintains proper separation of concerns:
- extractors/ must be pure functions with no dependencies on adapters/ or services/
- adapters/ must not depend on services/ or workflows/
- services/ must not depend on workflows/
- devtools/ works on local files only, never on Google APIs
- workflows/ and the CLI/MCP surfaces wire everything together
"""

import ast
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).parent.parent.parent

# Layers and their forbidden imports
LAYER_RULES = {
    "extractors": {"adapters", "services", "workflows", "cli", "server"},
    "adapters": {"services", "workflows", "cli", "server"},
    "services": {"workflows", "cli", "server"},
    "workflows": {"cli", "server"},
    "devtools": {"adapters", "services", "workflows", "cli", "server"},
}


def get_imports_from_file(filepath: Path) -> set[str]:
    """Extract all import names from a Python file."""
    tree = ast.parse(filepath.read_text(), filename=str(filepath))

    imports = set()

    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                imports.add(alias.name.split(".")[0])
        elif isinstance(node, ast.ImportFrom):
            if node.module and node.level == 0:
                imports.add(node.module.split(".")[0])

    return imports


def get_python_files(directory: Path) -> list[Path]:
    if not directory.exists():
        return []
    return sorted(directory.glob("*.py"))


class TestLayerBoundaries:
    """Verify that layer boundaries are respected."""

    @pytest.mark.parametrize("layer,forbidden", list(LAYER_RULES.items()))
    def test_layer_does_not_import_forbidden(self, layer: str, forbidden: set[str]) -> None:
        violations = []

        for filepath in get_python_files(PROJECT_ROOT / layer):
            bad_imports = get_imports_from_file(filepath) & forbidden
            if bad_imports:
                violations.append(f"{filepath.name} imports {bad_imports}")

        assert not violations, (
            f"Layer '{layer}' has forbidden imports:\n" +
            "\n".join(f"  - {v}" for v in violations)
        )

    def test_extractors_are_pure(self) -> None:
        """
        Extractors must only import from stdlib and shared models.

        No logging either: extractors return values, callers decide what
        to report.
        """
        allowed = {"extractors", "models"}
        stdlib_modules = getattr(sys, "stdlib_module_names", set())

        violations = []

        for filepath in get_python_files(PROJECT_ROOT / "extractors"):
            if filepath.name == "__init__.py":
                continue

            imports = get_imports_from_file(filepath)
            non_stdlib = imports - stdlib_modules - allowed
            if non_stdlib:
                violations.append(f"{filepath.name} imports non-stdlib: {non_stdlib}")
            if imports & {"logging", "logging_config"}:
                violations.append(f"{filepath.name} logs")

        assert not violations, (
            "Extractors must be pure (stdlib only):\n" +
            "\n".join(f"  - {v}" for v in violations)
        )

    def test_only_adapters_touch_google_clients(self) -> None:
        """googleapiclient is confined to adapters/ (and retry.py's error mapping)."""
        violations = []

        for layer in ("extractors", "services", "workflows"):
            for filepath in get_python_files(PROJECT_ROOT / layer):
                if "googleapiclient" in get_imports_from_file(filepath):
                    violations.append(f"{layer}/{filepath.name}")

        assert not violations, f"Google client imported outside adapters: {violations}"


class TestPackageStructure:
    """Verify expected package structure exists."""

    @pytest.mark.parametrize("package", ["extractors", "services", "workflows", "reports", "devtools"])
    def test_package_has_init(self, package: str) -> None:
        init_file = PROJECT_ROOT / package / "__init__.py"
        assert init_file.exists(), f"{package}/__init__.py missing"
