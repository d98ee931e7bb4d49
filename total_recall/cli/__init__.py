"""Command-line tools for Total Recall.

- ``python -m total_recall.cli`` (or ``total-recall``) -- build, inspect and
  search the code index.

Heavy imports (openai, chromadb, tiktoken) are deferred inside the command
handlers so ``--help`` and argument errors return immediately.
"""
