"""auth/ -- Accounts, tokens and route gates for accountgate.

Layer rule: auth/ imports stdlib, third-party libraries, core/ and mail/.
It does NOT import from api/. api/ imports from auth/, not the other way around.
"""
