"""todos/ -- Owner-scoped task storage for TodoVault.

Layer rule: todos/ imports from core/ and auth/ (for Principal and the users
table it references). It does NOT import from api/.
"""
