"""auth/ -- Credential core for credgate: tokens, passwords, and request auth helpers.

Layer rule: auth/ may import from core/ (configuration) and third-party
libraries. It does NOT import from api/.
api/ imports from auth/, not the other way around.
"""
