"""
Tests that enforce coding standards.

These tests verify that the codebase follows our import and logging
conventions.
"""

import ast as _ast
import pathlib as _pathlib

import pytest as _pytest

# Directories to check
SRC_DIR = _pathlib.Path(__file__).parent.parent / "src" / "confstack"
TESTS_DIR = _pathlib.Path(__file__).parent.parent / "tests"


def _get_python_files(directory: _pathlib.Path) -> list[_pathlib.Path]:
    """Get all Python files in a directory, recursively."""
    return sorted(directory.rglob("*.py"))


def _is_type_checking_guard(node: _ast.If) -> bool:
    test = node.test
    if isinstance(test, _ast.Name):
        return test.id == "TYPE_CHECKING"
    if isinstance(test, _ast.Attribute):
        return test.attr == "TYPE_CHECKING"
    return False


def _extract_from_imports(content: str) -> list[tuple[int, str]]:
    """
    Find 'from X import Y' statements.

    Returns list of (line_number, module) tuples.
    Excludes:
    - 'from __future__ import' (allowed)
    - Imports inside TYPE_CHECKING blocks (allowed)
    """
    tree = _ast.parse(content)
    guarded: set[int] = set()
    for node in _ast.walk(tree):
        if isinstance(node, _ast.If) and _is_type_checking_guard(node):
            for child in node.body:
                guarded.update(id(n) for n in _ast.walk(child))

    found: list[tuple[int, str]] = []
    for node in _ast.walk(tree):
        if not isinstance(node, _ast.ImportFrom) or id(node) in guarded:
            continue
        if node.module == "__future__":
            continue
        found.append((node.lineno, "." * node.level + (node.module or "")))
    return sorted(found)


def _from_import_violations(paths: list[_pathlib.Path]) -> list[str]:
    violations: list[str] = []
    for path in paths:
        # Re-exports in __init__.py are allowed
        if path.name == "__init__.py":
            continue
        for line_num, module in _extract_from_imports(path.read_text()):
            violations.append(f"{path}:{line_num}: from {module} import ...")
    return violations


def _calls_print(content: str) -> list[int]:
    tree = _ast.parse(content)
    return [
        node.lineno
        for node in _ast.walk(tree)
        if isinstance(node, _ast.Call)
        and isinstance(node.func, _ast.Name)
        and node.func.id == "print"
    ]


class TestImportStyle:
    """Tests for import style compliance."""

    def test_src_no_from_imports(self) -> None:
        """Source files should not use 'from X import Y' pattern."""
        violations = _from_import_violations(_get_python_files(SRC_DIR))
        if violations:
            msg = "Found forbidden 'from X import Y' imports:\n"
            msg += "\n".join(f"  {v}" for v in violations)
            msg += "\n\nUse 'import X as _x' (external) or 'import X as x' (internal) instead."
            _pytest.fail(msg)

    def test_tests_no_from_imports(self) -> None:
        """Test files should not use 'from X import Y' pattern."""
        violations = _from_import_violations(_get_python_files(TESTS_DIR))
        if violations:
            msg = "Found forbidden 'from X import Y' imports:\n"
            msg += "\n".join(f"  {v}" for v in violations)
            _pytest.fail(msg)


class TestLoggingStyle:
    """Library modules log through module loggers, never print()."""

    def test_no_print_in_src(self) -> None:
        offenders = [
            f"{path}:{line}"
            for path in _get_python_files(SRC_DIR)
            for line in _calls_print(path.read_text())
        ]
        assert not offenders, "print() in library code:\n" + "\n".join(offenders)

    def test_module_loggers_use_module_name(self) -> None:
        """Modules that define _logger must use getLogger(__name__)."""
        for path in _get_python_files(SRC_DIR):
            content = path.read_text()
            if "_logger =" in content:
                assert "_logger = _logging.getLogger(__name__)" in content, path


class TestImportExtraction:
    """Tests for the import extraction logic itself."""

    def test_detects_from_import(self) -> None:
        """Should detect basic from imports."""
        imports = _extract_from_imports("from pathlib import Path")
        assert imports == [(1, "pathlib")]

    def test_allows_future_imports(self) -> None:
        """Should allow __future__ imports."""
        assert _extract_from_imports("from __future__ import annotations") == []

    def test_ignores_type_checking_block(self) -> None:
        """Should ignore imports inside TYPE_CHECKING blocks."""
        content = """
import typing as _typing

if _typing.TYPE_CHECKING:
    from some_module import SomeType

def foo():
    pass
"""
        assert _extract_from_imports(content) == []

    def test_detects_import_after_type_checking(self) -> None:
        """Should still detect imports after TYPE_CHECKING block ends."""
        content = """
import typing as _typing

if _typing.TYPE_CHECKING:
    from allowed import Type

from forbidden import Other
"""
        assert _extract_from_imports(content) == [(7, "forbidden")]

    def test_detects_print_calls(self) -> None:
        assert _calls_print("x = 1\nprint(x)\n") == [2]
