"""Abstract interfaces for the external services Total Recall depends on.

Services receive these through their constructors, so any provider can be
replaced by a test double without touching service code.

- **IEmbeddingProvider** -- text to fixed-length vectors.
- **ILLMProvider** -- chat completion, one-shot or streamed.
- **IVectorStoreProvider** -- index creation, upload and similarity query.
- **IFileProvider** -- enumerate source files to index.
"""

from total_recall.interfaces.embedding_provider import IEmbeddingProvider
from total_recall.interfaces.file_provider import IFileProvider
from total_recall.interfaces.llm_provider import ILLMProvider
from total_recall.interfaces.vector_store_provider import QUERYABLE_FIELDS, IVectorStoreProvider

__all__ = [
    "IEmbeddingProvider",
    "IFileProvider",
    "ILLMProvider",
    "IVectorStoreProvider",
    "QUERYABLE_FIELDS",
]
