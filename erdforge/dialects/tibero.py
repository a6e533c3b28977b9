"""Tibero dialect adapter (Oracle-compatible catalog, types and identifiers)."""

from .oracle import OracleAdapter


class TiberoAdapter(OracleAdapter):
    """Tibero dialect adapter; reached through the Oracle driver."""

    name = "Tibero"
    service_name = "tibero"
