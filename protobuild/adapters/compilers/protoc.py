"""
Protoc adapter — invoke the Protocol Buffers schema compiler.

By default the compiler is the one bundled with grpcio-tools, run as
``python -m grpc_tools.protoc`` under the current interpreter; that
entry point also puts the bundled well-known types (google/protobuf/*)
on the include path. A system ``protoc`` (or any protoc-compatible
command) can be configured instead.

The adapter only marshals arguments. What the compiler writes, and
how it names its outputs, is the compiler's business.
"""

from __future__ import annotations

import importlib.util
import logging
import shlex
import shutil
import sys
from pathlib import Path

from protobuild.adapters.base import ExecutionContext
from protobuild.adapters.shell.command import ToolAdapter
from protobuild.core.models.generation import DEFAULT_PLUGINS

logger = logging.getLogger(__name__)

GRPC_TOOLS_MODULE = "grpc_tools.protoc"


class ProtocAdapter(ToolAdapter):
    """Run protoc for one generation request.

    Action params:
        inputs (list[str]): IDL files, in order.
        search_paths (list[str]): -I directories.
        output_dir (str): Directory every plugin writes into.
        plugins (list[str]): Output plugins (python, grpc_python, pyi, ...).
        extra_args (list[str]): Passed to protoc verbatim, before the inputs.
    """

    def __init__(self, executable: str | None = None):
        self._executable = executable

    @property
    def name(self) -> str:
        return "protoc"

    @property
    def base_command(self) -> list[str]:
        if self._executable:
            return shlex.split(self._executable)
        return [sys.executable, "-m", GRPC_TOOLS_MODULE]

    def is_available(self) -> bool:
        if self._executable:
            return shutil.which(self.base_command[0]) is not None
        try:
            return importlib.util.find_spec("grpc_tools") is not None
        except (ImportError, ValueError):
            return False

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        params = context.params
        if not params.get("inputs"):
            return False, "Missing required param: 'inputs'"

        output_dir = params.get("output_dir")
        if not output_dir:
            return False, "Missing required param: 'output_dir'"
        # dry runs resolve without creating the output directory
        if not context.dry_run and not Path(output_dir).is_dir():
            return False, f"Output directory does not exist: {output_dir}"

        return super().validate(context)

    def build_command(self, context: ExecutionContext) -> list[str]:
        params = context.params
        output_dir = str(params["output_dir"])
        plugins = params.get("plugins") or list(DEFAULT_PLUGINS)

        command = list(self.base_command)
        command.extend(f"-I{path}" for path in params.get("search_paths", []))
        command.extend(f"--{plugin}_out={output_dir}" for plugin in plugins)
        command.extend(str(arg) for arg in params.get("extra_args", []))
        command.extend(str(path) for path in params["inputs"])
        return command
