"""
Import-boundary enforcement for the layered packages.

1. Kernel isolation    -- stock_kernel/** may not import engines, config
                          or services.
2. Engine purity       -- stock_engines/** may not import config or
                          services, and may not read the wall clock or
                          the environment.
3. Config direction    -- stock_config/** may not import services.

All scanning is done via AST; these tests are read-only.
"""

import ast
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[2]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _python_files(package: str) -> list[Path]:
    """Return all .py files under *package*, sorted for deterministic order."""
    return sorted((REPO_ROOT / package).rglob("*.py"))


def _parse(filepath: Path) -> ast.AST | None:
    try:
        return ast.parse(filepath.read_text(), filename=str(filepath))
    except (SyntaxError, UnicodeDecodeError):
        return None


def _extract_imports(filepath: Path) -> list[tuple[int, str]]:
    """Return (line_number, module_string) for every import in *filepath*."""
    tree = _parse(filepath)
    if tree is None:
        return []

    results: list[tuple[int, str]] = []
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                results.append((node.lineno, alias.name))
        elif isinstance(node, ast.ImportFrom):
            if node.module:
                results.append((node.lineno, node.module))
    return results


def _matches_any(module: str, prefixes: tuple[str, ...]) -> bool:
    """True if *module* equals or is a child of any prefix."""
    return any(module == p or module.startswith(f"{p}.") for p in prefixes)


def _extract_attribute_calls(filepath: Path) -> list[tuple[int, str]]:
    """Return (line_number, 'receiver.attr') for two-level attribute references."""
    tree = _parse(filepath)
    if tree is None:
        return []

    return [
        (node.lineno, f"{node.value.id}.{node.attr}")
        for node in ast.walk(tree)
        if isinstance(node, ast.Attribute) and isinstance(node.value, ast.Name)
    ]


def _violations(package: str, forbidden: tuple[str, ...]) -> list[str]:
    found: list[str] = []
    for filepath in _python_files(package):
        for lineno, module in _extract_imports(filepath):
            if _matches_any(module, forbidden):
                found.append(f"  {filepath.relative_to(REPO_ROOT)}:{lineno} imports '{module}'")
    return found


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------

class TestKernelIsolation:

    def test_kernel_imports_nothing_above_it(self):
        violations = _violations(
            "stock_kernel", ("stock_engines", "stock_config", "stock_services"),
        )

        assert not violations, (
            "Kernel boundary violation: stock_kernel/** must not import "
            "higher layers:\n" + "\n".join(violations)
        )


class TestEnginePurity:

    FORBIDDEN_CALLS = frozenset({
        "datetime.now",
        "datetime.utcnow",
        "date.today",
        "time.time",
        "os.environ",
        "os.getenv",
    })

    def test_engine_files_have_no_forbidden_imports(self):
        violations = _violations("stock_engines", ("stock_config", "stock_services"))

        assert not violations, (
            "Engine purity violation: stock_engines/** must not import "
            "config or services:\n" + "\n".join(violations)
        )

    def test_no_impure_calls_in_engines(self):
        violations = [
            f"  {filepath.relative_to(REPO_ROOT)}:{lineno} calls '{qualname}'"
            for filepath in _python_files("stock_engines")
            for lineno, qualname in _extract_attribute_calls(filepath)
            if qualname in self.FORBIDDEN_CALLS
        ]

        assert not violations, (
            "Engine impurity violation: take ``as_of`` or a Clock instead of "
            "reading the wall clock:\n" + "\n".join(violations)
        )


class TestConfigDirection:

    def test_config_does_not_import_services(self):
        violations = _violations("stock_config", ("stock_services",))

        assert not violations, "\n".join(violations)
