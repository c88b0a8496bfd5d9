"""Per-operation semantic analysis.

:class:`ServiceMethodAnalyzer` turns a
:class:`~specgraph.models.ResolvedOperation` into a
:class:`~specgraph.models.ServiceMethodModel`.  The helper modules map
schemas to type expressions (:mod:`~specgraph.analysis.type_mapper`) and
classify media types (:mod:`~specgraph.analysis.media_types`).
"""

from specgraph.analysis.service_method import ServiceMethodAnalyzer
from specgraph.analysis.type_mapper import TypeMapper, is_data_type_interface, schema_to_type

__all__ = [
    "ServiceMethodAnalyzer",
    "TypeMapper",
    "is_data_type_interface",
    "schema_to_type",
]
