from .writer import ArticleWriter

__all__ = ["ArticleWriter"]
