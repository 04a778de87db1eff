"""auth/ -- Credential records, password hashing, and the AUTH/VERIFY service.

Layer rule: auth/ imports only stdlib + third-party libraries.
It does NOT import from api/ or core/.
api/ imports from auth/, not the other way around.
"""
