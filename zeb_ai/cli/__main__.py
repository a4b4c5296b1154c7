"""Allow ``python -m zeb_ai.cli`` execution."""

from zeb_ai.cli.ingest import main

main()
