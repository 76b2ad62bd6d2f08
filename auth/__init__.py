"""auth/ -- Session and access-control package for the resource directory.

Layer rule: auth/ imports only stdlib, third-party libraries and core/.
It does NOT import from api/, web/, directory/, or cache/.
api/ and web/ import from auth/, not the other way around.
"""
