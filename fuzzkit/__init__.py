"""Web fuzzing building blocks: inputs, filters, an HTTP runner, scrapers and output."""

__version__ = "2.0.0"