"""
Voice session layer for the patent drafting assistant.

Bridges the realtime model's event channel to the patent service:
- Bootstrap: one session.update with the assistant persona per activation
- Relay: picks function calls out of response.done events, suppresses
  repeated deliveries, runs them without blocking the inbound stream and
  sends each result back as a function.response event

The transport to the model is not part of this package; the relay only
needs an async ``send(event)`` callable and a stream of inbound events.
"""
