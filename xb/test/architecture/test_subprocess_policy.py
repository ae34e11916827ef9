from __future__ import annotations

import ast

from ._gate import require_arch_checks_enabled
from ._utils import iter_python_files, parse_imports, read_tree, xb_root


def _direct_spawn_lines(tree: ast.AST) -> list[int]:
    lines: list[int] = []
    for node in ast.walk(tree):
        if not isinstance(node, ast.Call):
            continue
        func = node.func
        if not isinstance(func, ast.Attribute):
            continue
        if not isinstance(func.value, ast.Name):
            continue
        if func.value.id == "subprocess" and func.attr in {"run", "check_output", "Popen"}:
            lines.append(node.lineno)
        if func.value.id == "asyncio" and func.attr in {"create_subprocess_exec", "create_subprocess_shell"}:
            lines.append(node.lineno)
        if func.value.id == "os" and func.attr == "system":
            lines.append(node.lineno)
    return lines


def test_child_processes_are_spawned_only_by_the_process_runner() -> None:
    require_arch_checks_enabled()

    root = xb_root()
    allowlist = {"platform/process.py"}

    offenders: list[str] = []
    for file_path in iter_python_files(root):
        rel = file_path.relative_to(root)
        if rel.parts and rel.parts[0] == "test":
            continue
        if rel.as_posix() in allowlist:
            continue

        for line in _direct_spawn_lines(read_tree(file_path)):
            offenders.append(f"{rel}:{line}: direct process spawn outside the runner")

    assert not offenders, "Subprocess policy violations:\n" + "\n".join(offenders)


def test_subprocess_module_is_not_imported() -> None:
    require_arch_checks_enabled()

    root = xb_root()
    offenders: list[str] = []
    for file_path in iter_python_files(root):
        rel = file_path.relative_to(root)
        if rel.parts and rel.parts[0] == "test":
            continue
        for item in parse_imports(file_path):
            if item.module == "subprocess":
                offenders.append(f"{rel}:{item.line}: imports subprocess")

    assert not offenders, "Subprocess policy violations:\n" + "\n".join(offenders)
