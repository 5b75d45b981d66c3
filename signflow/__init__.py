"""signflow: locate $signature placeholders in PDFs and embed drawn marks."""

__version__ = "0.1.0"
