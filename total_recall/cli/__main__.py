"""Allow ``python -m total_recall.cli`` execution."""

from total_recall.cli.indexer import main

main()
