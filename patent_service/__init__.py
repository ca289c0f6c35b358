"""
Patent service for the voice drafting assistant.

Owns the draft: the document store, the single-slot session registry and
the function executor the realtime model calls into. Exposes them over
HTTP and a WebSocket relay bridge (see api.py / server.py).

There is exactly one active patent session per service; the design assumes
one interactive user and does no locking.
"""
