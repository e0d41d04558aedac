"""clientgen — gated OpenAPI → TypeScript client generation and npm publishing."""

__version__ = "0.1.0"
