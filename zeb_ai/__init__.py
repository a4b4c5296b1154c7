"""Zeb AI -- campus-safety assistant for ASTU.

Answers safety questions from the university's own documents using
retrieval-augmented generation and keeps a per-user chat history.
"""

__version__ = "0.1.0"
