"""Statement ingestion: preamble stripping and tabular adapters."""
