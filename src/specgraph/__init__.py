"""specgraph -- Resolve OpenAPI documents into generation-ready models.

specgraph loads an OpenAPI 3.x or Swagger 2.0 document together with every
document it references, validates and normalizes it, and derives a semantic
model per operation that client code generators template from.

Typical workflow::

    specgraph inspect info --spec openapi.yaml
    specgraph --json inspect analyze getUser --spec openapi.yaml

Modules:
    app: Typer application factory and CLI entry point.
    models: Pydantic models shared across the entire package.
    config: XDG-aware configuration loading.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
    parser: Loading, validation, reference resolution and normalization.
    analysis: Per-operation semantic models.
    runtime_expressions: Link and callback runtime expression evaluation.
"""

__version__ = "0.1.0"
