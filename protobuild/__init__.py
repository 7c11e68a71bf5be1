"""protobuild — build-time stub generation for Protocol Buffers / gRPC IDL."""

__version__ = "0.1.0"
