"""Compare how quickly a gRPC transaction feed and a shredstream proxy report new slots."""

__version__ = "0.1.0"