"""Backend clients and operation adapters."""
