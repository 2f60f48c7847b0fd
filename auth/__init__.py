"""auth/ -- Authentication and authorization package for the user directory.

Credential hashing, bearer tokens, the user store and the FastAPI access guard.

Layer rule: auth/ imports only stdlib, third-party libraries and core/.
It does NOT import from api/ or directory/.
api/ and directory/ import from auth/, not the other way around.
"""
