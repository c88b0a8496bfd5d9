"""Inspect commands -- examine a document and what specgraph derives from it.

Provides the ``specgraph inspect`` sub-command group. Every sub-command
resolves the configuration, loads the document named by ``--spec`` (or by
the configured ``input``) together with everything it references, and
prints a read-only view in table or structured format.
"""

from __future__ import annotations

import asyncio
from typing import Optional

import typer

from specgraph.exceptions import InvalidUsageError, SpecgraphError
from specgraph.output import error, get_output, info, print_document, suggest

inspect_app = typer.Typer(no_args_is_help=True)

_SPEC_OPTION_HELP = "URL or path of the root document (default: configured input)."


def _load_parser(ctx: typer.Context, spec: Optional[str]):  # noqa: ANN202
    """Resolve config and build a :class:`~specgraph.parser.SpecParser`.

    Raises:
        typer.Exit: With the error's exit code when config resolution,
            loading or validation fails.
    """
    from specgraph.config import resolve_config
    from specgraph.parser import SpecParser

    obj = ctx.obj or {}
    try:
        config = resolve_config(
            cli_input=spec,
            cli_config=obj.get("config_file"),
            cli_date_type=obj.get("date_type"),
        )
        if not config.input:
            raise InvalidUsageError("No input document. Pass --spec or set SPECGRAPH_INPUT.")
        return asyncio.run(SpecParser.create(config.input, config))
    except SpecgraphError as exc:
        error(str(exc))
        if isinstance(exc, InvalidUsageError):
            suggest("specgraph inspect info --spec openapi.yaml")
        raise typer.Exit(code=exc.exit_code) from None


@inspect_app.command("info")
def inspect_info(
    ctx: typer.Context,
    spec: Optional[str] = typer.Option(None, "--spec", "-s", help=_SPEC_OPTION_HELP),
) -> None:
    """Show document info (title, version, dialect, servers, counts).

    Example::

        specgraph inspect info --spec openapi.yaml
    """
    parser = _load_parser(ctx, spec)
    document_info = parser.spec.get("info") or {}
    version = parser.get_spec_version()

    data: dict = {
        "title": document_info.get("title"),
        "version": document_info.get("version"),
        "spec_version": f"{version.type} {version.version}" if version else None,
        "json_schema_dialect": parser.json_schema_dialect,
        "servers": [server.url for server in parser.servers],
        "operations": len(parser.operations),
        "webhooks": len(parser.webhooks),
        "schemas": len(parser.schemas),
        "security_schemes": list(parser.security),
        "documents": [uri for uri, _ in parser.cache.documents()],
    }
    print_document(data)


@inspect_app.command("paths")
def inspect_paths(
    ctx: typer.Context,
    spec: Optional[str] = typer.Option(None, "--spec", "-s", help=_SPEC_OPTION_HELP),
) -> None:
    """List every operation and webhook with its generated method name."""
    parser = _load_parser(ctx, spec)

    headers = ["Method", "Path", "Method Name", "Operation ID", "Deprecated"]
    rows: list[list[str]] = []
    for op in parser.operations + parser.webhooks:
        rows.append([
            op.method,
            f"{op.path} (webhook)" if op.is_webhook else op.path,
            op.method_name or "-",
            op.operation_id or "-",
            "Yes" if op.deprecated else "",
        ])
    get_output().print_table(headers, rows, title=f"Operations ({len(rows)})")


@inspect_app.command("schemas")
def inspect_schemas(
    ctx: typer.Context,
    spec: Optional[str] = typer.Option(None, "--spec", "-s", help=_SPEC_OPTION_HELP),
) -> None:
    """List the document's schemas with their generated names and type expressions."""
    from specgraph.analysis import TypeMapper

    parser = _load_parser(ctx, spec)
    if not parser.schemas:
        info("No schemas defined in this document.")
        return

    mapper = TypeMapper(parser.config, [schema.name for schema in parser.schemas])
    headers = ["Schema", "Type", "Properties"]
    rows: list[list[str]] = []
    for schema in parser.schemas:
        definition = schema.definition if isinstance(schema.definition, dict) else {}
        properties = list((definition.get("properties") or {}).keys())
        props = ", ".join(properties[:5]) + ("..." if len(properties) > 5 else "")
        rows.append([schema.name, mapper.to_type(definition), props])
    get_output().print_table(headers, rows, title=f"Schemas ({len(rows)})")


@inspect_app.command("auth")
def inspect_auth(
    ctx: typer.Context,
    spec: Optional[str] = typer.Option(None, "--spec", "-s", help=_SPEC_OPTION_HELP),
) -> None:
    """Show the security schemes defined in the document."""
    parser = _load_parser(ctx, spec)
    if not parser.security:
        info("No security schemes defined.")
        return

    headers = ["Name", "Type", "Scheme", "Location", "Description"]
    rows: list[list[str]] = []
    for name, scheme in parser.security.items():
        rows.append([
            name,
            str(scheme.get("type", "-")),
            str(scheme.get("scheme", "-")),
            str(scheme.get("in", "-")),
            str(scheme.get("description") or "-")[:60],
        ])
    get_output().print_table(headers, rows, title="Security Schemes")


@inspect_app.command("analyze")
def inspect_analyze(
    ctx: typer.Context,
    operation_id: str = typer.Argument(..., help="operationId or generated method name."),
    spec: Optional[str] = typer.Option(None, "--spec", "-s", help=_SPEC_OPTION_HELP),
) -> None:
    """Print the semantic model derived for one operation.

    Example::

        specgraph --json inspect analyze getPetById --spec petstore.yaml
    """
    from specgraph.analysis import ServiceMethodAnalyzer

    parser = _load_parser(ctx, spec)
    operation = parser.find_operation(operation_id) or next(
        (op for op in parser.operations + parser.webhooks if op.method_name == operation_id),
        None,
    )
    if operation is None:
        error(f"Operation '{operation_id}' not found.")
        suggest("specgraph inspect paths")
        raise typer.Exit(code=InvalidUsageError.exit_code)

    model = ServiceMethodAnalyzer(parser.config, parser).analyze(operation)
    print_document(model.model_dump(mode="json", exclude_none=True) if model else None)
