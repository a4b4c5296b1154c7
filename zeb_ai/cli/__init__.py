"""Command-line tools for Zeb AI.

- ``python -m zeb_ai.cli.ingest`` -- add, list and delete knowledge-base
  documents, and ask questions from the terminal.
- ``python -m zeb_ai.cli`` -- shorthand for the same tool.
"""
