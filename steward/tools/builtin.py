"""Core tools: filesystem access, shell execution and arithmetic.

File operations are confined to ``root_dir`` unless absolute paths are
explicitly allowed.
"""

import ast
import asyncio
import base64
import logging
import math
import operator
import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from .models import ToolDefinition

logger = logging.getLogger(__name__)

DEFAULT_BASH_TIMEOUT_S = 30
DEFAULT_MAX_READ_BYTES = 1_000_000
MAX_BASH_OUTPUT_BYTES = 2 * 1024 * 1024


@dataclass
class CoreToolsOptions:
    """Sandbox options for the core tools."""
    root_dir: Optional[str] = None  # defaults to cwd
    allow_absolute_paths: bool = False
    bash_timeout_seconds: float = DEFAULT_BASH_TIMEOUT_S
    max_read_bytes: int = DEFAULT_MAX_READ_BYTES


def normalize_path(raw_path: str, root_dir: Path, allow_absolute_paths: bool) -> Path:
    """Resolve ``raw_path`` against ``root_dir``; reject escapes unless allowed."""
    target = (root_dir / raw_path).resolve()
    if allow_absolute_paths:
        return target
    if target != root_dir and root_dir not in target.parents:
        raise ValueError(f"Path is outside allowed root: {raw_path}")
    return target


def _require(args: Dict[str, Any], key: str) -> Any:
    value = args.get(key)
    if value is None or value == "":
        raise ValueError(f"Missing required argument: {key}")
    return value


def create_core_tools(options: Optional[CoreToolsOptions] = None) -> List[ToolDefinition]:
    """Build fs_read_file, fs_write_file, fs_delete_path, fs_list_dir and bash."""
    options = options or CoreToolsOptions()
    root_dir = Path(options.root_dir or os.getcwd()).resolve()
    allow_abs = options.allow_absolute_paths

    def resolve(raw: str) -> Path:
        return normalize_path(raw, root_dir, allow_abs)

    async def read_file(args: Dict[str, Any]) -> str:
        path = resolve(_require(args, "path"))
        encoding = args.get("encoding") or "utf-8"
        max_bytes = max(1, int(args.get("maxBytes") or options.max_read_bytes))
        with open(path, "rb") as f:
            data = f.read(max_bytes)
        if encoding == "base64":
            return base64.b64encode(data).decode("ascii")
        return data.decode("utf-8", errors="replace")

    async def write_file(args: Dict[str, Any]) -> str:
        raw_path = _require(args, "path")
        content = args.get("content")
        if not isinstance(content, str):
            raise ValueError("Missing required argument: content")
        path = resolve(raw_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "a" if args.get("append") else "w", encoding="utf-8") as f:
            f.write(content)
        return f"OK: wrote {len(content)} chars to {raw_path}"

    async def delete_path(args: Dict[str, Any]) -> str:
        raw_path = _require(args, "path")
        path = resolve(raw_path)
        if path.is_dir():
            if args.get("recursive", True):
                shutil.rmtree(path)
            else:
                path.rmdir()
        else:
            path.unlink(missing_ok=True)
        return f"OK: deleted {raw_path}"

    async def list_dir(args: Dict[str, Any]) -> str:
        path = resolve(args.get("path") or ".")
        rows = [
            f"{'dir ' if entry.is_dir() else 'file'} {entry.name}"
            for entry in sorted(path.iterdir(), key=lambda p: p.name)
        ]
        return "\n".join(rows) or "(empty)"

    async def bash(args: Dict[str, Any]) -> str:
        command = _require(args, "command")
        cwd = resolve(args["cwd"]) if args.get("cwd") else root_dir
        timeout = float(args.get("timeoutSeconds") or options.bash_timeout_seconds)
        return await run_bash(command, cwd, timeout)

    return [
        ToolDefinition(
            name="fs_read_file",
            description="Read file content from disk.",
            executor=read_file,
            parameters={
                "type": "object",
                "properties": {
                    "path": {"type": "string", "description": "File path to read."},
                    "encoding": {"type": "string", "enum": ["utf-8", "base64"], "default": "utf-8"},
                    "maxBytes": {"type": "number", "description": "Maximum bytes to return from the start of the file."},
                },
                "required": ["path"],
            },
        ),
        ToolDefinition(
            name="fs_write_file",
            description="Write or append content to a file on disk.",
            executor=write_file,
            parameters={
                "type": "object",
                "properties": {
                    "path": {"type": "string", "description": "File path to write."},
                    "content": {"type": "string", "description": "Text content to write."},
                    "append": {"type": "boolean", "default": False, "description": "Append instead of overwrite."},
                },
                "required": ["path", "content"],
            },
        ),
        ToolDefinition(
            name="fs_delete_path",
            description="Delete a file or directory from disk.",
            executor=delete_path,
            parameters={
                "type": "object",
                "properties": {
                    "path": {"type": "string", "description": "Path to delete."},
                    "recursive": {"type": "boolean", "default": True, "description": "Delete directory recursively."},
                },
                "required": ["path"],
            },
        ),
        ToolDefinition(
            name="fs_list_dir",
            description="List files and directories under a path.",
            executor=list_dir,
            parameters={
                "type": "object",
                "properties": {
                    "path": {"type": "string", "description": "Directory path to list.", "default": "."},
                },
            },
        ),
        ToolDefinition(
            name="bash",
            description="Run a bash command and return stdout/stderr.",
            executor=bash,
            parameters={
                "type": "object",
                "properties": {
                    "command": {"type": "string", "description": "Bash command to execute."},
                    "cwd": {"type": "string", "description": "Working directory for command execution."},
                    "timeoutSeconds": {"type": "number", "description": "Execution timeout in seconds."},
                },
                "required": ["command"],
            },
        ),
    ]


async def run_bash(command: str, cwd: Path, timeout: float) -> str:
    """Run ``bash -lc command``; failures are reported in the returned text."""
    proc = await asyncio.create_subprocess_exec(
        "bash", "-lc", command,
        cwd=str(cwd),
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    try:
        stdout_b, stderr_b = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        proc.kill()
        stdout_b, stderr_b = await proc.communicate()
        return _format_bash(
            stdout_b, stderr_b,
            code="timeout",
            error=f"Command timed out after {timeout:g}s",
        )

    if proc.returncode != 0:
        return _format_bash(
            stdout_b, stderr_b,
            code=proc.returncode,
            error=f"Command failed with exit code {proc.returncode}",
        )
    return _format_bash(stdout_b, stderr_b)


def _format_bash(stdout_b: bytes, stderr_b: bytes, code: Any = None, error: Optional[str] = None) -> str:
    stdout = stdout_b[:MAX_BASH_OUTPUT_BYTES].decode("utf-8", errors="replace")
    stderr = stderr_b[:MAX_BASH_OUTPUT_BYTES].decode("utf-8", errors="replace")
    parts = []
    if error is not None:
        parts += [f"exit_code: {code}", f"error: {error}"]
    parts += [f"stdout:\n{stdout}", f"stderr:\n{stderr}"]
    return "\n".join(parts)


# ---------------------------------------------------------------------------
# Calculator
# ---------------------------------------------------------------------------

# Checked before computing; anything larger is beyond float range
MAX_RESULT_DIGITS = 400


def _pow(base, exponent):
    if exponent > 0 and abs(base) > 1 and exponent * math.log10(abs(base)) > MAX_RESULT_DIGITS:
        raise OverflowError("result too large")
    return operator.pow(base, exponent)


_BIN_OPS = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
    ast.Pow: _pow,
}
_UNARY_OPS = {ast.UAdd: operator.pos, ast.USub: operator.neg}
_FUNCS = {"sqrt": math.sqrt, "abs": abs, "round": round}


def evaluate_expression(expression: str) -> float:
    """Evaluate an arithmetic expression. ``^`` is exponentiation."""
    try:
        tree = ast.parse(expression.replace("^", "**"), mode="eval")
    except SyntaxError as e:
        raise ValueError(f'Failed to evaluate "{expression}": invalid syntax') from e

    def _eval(node: ast.AST) -> float:
        if isinstance(node, ast.Expression):
            return _eval(node.body)
        if isinstance(node, ast.Constant) and isinstance(node.value, (int, float)):
            return node.value
        if isinstance(node, ast.BinOp) and type(node.op) in _BIN_OPS:
            return _BIN_OPS[type(node.op)](_eval(node.left), _eval(node.right))
        if isinstance(node, ast.UnaryOp) and type(node.op) in _UNARY_OPS:
            return _UNARY_OPS[type(node.op)](_eval(node.operand))
        if (
            isinstance(node, ast.Call)
            and isinstance(node.func, ast.Name)
            and node.func.id in _FUNCS
            and not node.keywords
        ):
            return _FUNCS[node.func.id](*[_eval(arg) for arg in node.args])
        raise ValueError(
            "Invalid characters in expression. Only numbers and + - * / ( ) . ^ % sqrt allowed."
        )

    try:
        result = _eval(tree)
        finite = isinstance(result, (int, float)) and math.isfinite(result)
    except (ZeroDivisionError, OverflowError) as e:
        raise ValueError(f'Failed to evaluate "{expression}": {e}') from e
    if not finite:
        raise ValueError(f'Failed to evaluate "{expression}": Invalid result')
    return result


async def _calculate(args: Dict[str, Any]) -> str:
    result = evaluate_expression(str(_require(args, "expression")))
    if isinstance(result, float) and result.is_integer():
        result = int(result)
    return str(result)


calculator_tool = ToolDefinition(
    name="calculator",
    description='Evaluate mathematical expressions like "2 + 2", "sqrt(16)", "10 * 5", etc.',
    executor=_calculate,
    parameters={
        "type": "object",
        "properties": {
            "expression": {
                "type": "string",
                "description": 'The mathematical expression to evaluate (e.g., "123 * 456")',
            },
        },
        "required": ["expression"],
    },
)
