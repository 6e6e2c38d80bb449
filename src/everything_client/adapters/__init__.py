"""Everything adapter layer — One connector per transport.

Built-in adapters:
  - cli: spawns ``es.exe`` and parses its CSV output
  - ipc: calls the native Everything SDK library (Windows only)
  - http: queries an Everything HTTP server

Implement ``EverythingAdapter`` and register it with an ``AdapterRegistry``
to add another transport.
"""
