"""
Container entrypoint bootstrap for the search service.

Repairs ownership of the index data volume when started as root, then
replaces itself with the search engine's entrypoint running as the
service account.
"""
