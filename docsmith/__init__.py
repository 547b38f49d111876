"""docsmith: engineering documents from source code and descriptions."""

__version__ = "0.1.0"
