from . import books, content, documents, translations

__all__ = ["books", "content", "documents", "translations"]
