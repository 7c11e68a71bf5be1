"""
Shared test fixtures and configuration.
"""

import textwrap
from pathlib import Path

import pytest

from protobuild.adapters.mock import MockAdapter
from protobuild.adapters.registry import AdapterRegistry

GREETER_PROTO = textwrap.dedent("""\
    syntax = "proto3";

    package greeter;

    service Greeter {
      rpc SayHello (HelloRequest) returns (HelloReply);
    }

    message HelloRequest {
      string name = 1;
    }

    message HelloReply {
      string message = 1;
    }
""")

# What a protoc run over greeter.proto leaves in the output directory
GREETER_OUTPUTS = {
    "greeter_pb2.py": "# messages: HelloRequest, HelloReply\n",
    "greeter_pb2_grpc.py": "# services: GreeterStub\n",
    "greeter_pb2.pyi": "# type stubs\n",
}


@pytest.fixture
def proto_dir(tmp_path: Path) -> Path:
    """A protos/ directory holding greeter.proto."""
    protos = tmp_path / "protos"
    protos.mkdir()
    (protos / "greeter.proto").write_text(GREETER_PROTO)
    return protos


@pytest.fixture
def project(tmp_path: Path, proto_dir: Path) -> Path:
    """A project root with protobuild.yml and one IDL input."""
    (tmp_path / "protobuild.yml").write_text(textwrap.dedent("""\
        name: greeter
        inputs:
          - protos/greeter.proto
        search_paths:
          - protos
        output_dir: generated
    """))
    return tmp_path


@pytest.fixture
def config_file(project: Path) -> Path:
    return project / "protobuild.yml"


@pytest.fixture
def compiler() -> MockAdapter:
    """Stand-in for protoc that writes the greeter outputs."""
    mock = MockAdapter("protoc")
    mock.set_files("generate", GREETER_OUTPUTS)
    return mock


@pytest.fixture
def formatter() -> MockAdapter:
    return MockAdapter("formatter")


@pytest.fixture
def registry(compiler: MockAdapter, formatter: MockAdapter) -> AdapterRegistry:
    return AdapterRegistry([compiler, formatter])
