"""Public interface definitions for all external collaborators.

Every external API or store is accessed through the abstract base classes
in this package.  Concrete adapters live in ``zeb_ai/providers/`` and are
wired together in ``zeb_ai/main.py``; tests substitute mocks.

CONCRETE PROVIDER MAP:
    Interface              ->  Concrete implementations
    -------------------------------------------------------------
    IEmbeddingProvider     ->  VoyageEmbeddingProvider, OpenAIEmbeddingProvider
    ILLMProvider           ->  GeminiLLMProvider, OpenAILLMProvider,
                               AnthropicLLMProvider
    IDocumentStore         ->  SQLiteDocumentStore
    IConversationStore     ->  SQLiteConversationStore
    ITextExtractor         ->  FileTextExtractor
"""

from zeb_ai.interfaces.conversation_store import IConversationStore
from zeb_ai.interfaces.document_store import IDocumentStore
from zeb_ai.interfaces.embedding_provider import IEmbeddingProvider
from zeb_ai.interfaces.llm_provider import ILLMProvider
from zeb_ai.interfaces.text_extractor import ITextExtractor

__all__ = [
    "IConversationStore",
    "IDocumentStore",
    "IEmbeddingProvider",
    "ILLMProvider",
    "ITextExtractor",
]
