"""vaultclip: save the articles linked from your notes vault as Markdown."""

__version__ = "0.1.0"
