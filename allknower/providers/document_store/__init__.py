"""Document store adapters."""

from allknower.providers.document_store.etapi_client import ETAPIClient

__all__ = ["ETAPIClient"]
