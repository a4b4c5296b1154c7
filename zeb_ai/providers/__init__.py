"""Concrete adapters for every external collaborator.

Each subpackage implements one interface from ``zeb_ai.interfaces``:

    embedding/       IEmbeddingProvider  (Voyage, OpenAI)
    llm/             ILLMProvider        (Gemini, OpenAI, Anthropic)
    document_store/  IDocumentStore      (SQLite + FTS5)
    conversation/    IConversationStore  (SQLite)
    extraction/      ITextExtractor      (PyMuPDF, python-docx)
"""
