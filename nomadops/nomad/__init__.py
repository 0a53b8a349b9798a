"""Nomad API access.

Exposes:
    NomadClient    -- async HTTP client, passed explicitly to every core operation.
    EventStream    -- an open event stream yielding EventBatch frames.
    RequestOptions -- namespace/region scoping derived from a Source.
"""

from nomadops.nomad.client import EventStream, NomadClient, RequestOptions

__all__ = ["EventStream", "NomadClient", "RequestOptions"]
