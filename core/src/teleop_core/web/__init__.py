"""Browser-facing HTTP surface.

- ``POST /login`` checks a username/password pair against users.json
- every other GET path is a static asset under the configured web directory

Pages talk to vehicles through the WebSocket relay, not through this router.
"""
