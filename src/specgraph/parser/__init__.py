"""OpenAPI document parser -- load, validate, resolve and normalize.

This sub-package is responsible for the first half of the specgraph pipeline:
turning a root OpenAPI/Swagger document (JSON or YAML, local file or remote
URL) and everything it references into a :class:`SpecParser` that the
analyzer and code emitters consume.

Typical usage::

    import asyncio
    from specgraph.parser import SpecParser

    parser = asyncio.run(SpecParser.create("specs/main.yaml"))
    for op in parser.operations:
        print(op.method, op.path)

Sub-modules:

* :mod:`~specgraph.parser.loader` -- I/O layer (URL, file, stdin), format
  detection and multi-document loading.
* :mod:`~specgraph.parser.validator` -- structural checks per document and
  operationId uniqueness across documents.
* :mod:`~specgraph.parser.resolver` -- document cache and ``$ref`` /
  ``$dynamicRef`` resolution with cycle detection.
* :mod:`~specgraph.parser.servers` -- server URL resolution and variable
  substitution.
* :mod:`~specgraph.parser.normalizer` -- Swagger 2.0 to OpenAPI 3.x mapping.
* :mod:`~specgraph.parser.extractor` -- flattens paths and webhooks into
  :class:`~specgraph.models.ResolvedOperation` objects.
* :mod:`~specgraph.parser.polymorphism` -- discriminator variants.
* :mod:`~specgraph.parser.spec_parser` -- the :class:`SpecParser` façade.
"""

from specgraph.parser.loader import DocumentLoader, load_document, parse_content
from specgraph.parser.resolver import DocumentCache, ReferenceResolver
from specgraph.parser.spec_parser import SpecParser
from specgraph.parser.validator import validate_spec

__all__ = [
    "DocumentCache",
    "DocumentLoader",
    "ReferenceResolver",
    "SpecParser",
    "load_document",
    "parse_content",
    "validate_spec",
]
