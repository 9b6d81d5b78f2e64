"""mail/ -- Outbound transactional email for accountgate.

Layer rule: mail/ imports only stdlib + third-party libraries and core/.
It does NOT import from api/ or auth/. The account service receives an
EmailClient at construction time; nothing here holds process-wide state.
"""
