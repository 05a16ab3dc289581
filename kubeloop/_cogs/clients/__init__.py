"""
Low-level API clients: requests, streams, and the API errors.

Only the raw HTTP-level communication lives here: no notifications,
no sequencing, no handlers. The transport is ``aiohttp``.
"""
