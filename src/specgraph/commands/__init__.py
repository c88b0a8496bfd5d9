"""Built-in CLI sub-commands for specgraph.

* :mod:`~specgraph.commands.inspect` -- examine a document: info, paths,
  schemas, security schemes, and the semantic model of one operation.
"""
