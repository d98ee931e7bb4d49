"""Total Recall -- retrieval-augmented answers over your own source code.

Indexes a directory of source files as vector embeddings and answers
natural-language questions by retrieving the closest previous
implementations and handing them to a language model as context.
"""

__version__ = "0.1.0"
