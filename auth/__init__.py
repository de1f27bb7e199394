"""auth/ -- Authentication and credential verification for the boilerplate API.

Layer rule: auth/ imports only stdlib, third-party libraries, and core/.
It does NOT import from api/, acl/, files/, or projects/.
api/ imports from auth/, not the other way around. cache/ is referenced only
for type checking; the token cache instance is passed in by the caller.
"""
