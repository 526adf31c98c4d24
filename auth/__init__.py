"""auth/ -- Credential issuance, token verification, and the auth gate for TodoVault.

Layer rule: auth/ imports only core/, stdlib, and third-party libraries.
It does NOT import from api/ or todos/.
api/ and todos/ import from auth/, not the other way around.
"""
