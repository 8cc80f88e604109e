"""auth/ -- Credentials, tokens, verification codes, user store and account flows.

Layer rule: auth/ imports only stdlib, third-party libraries and core/
(auth/service.py also takes a mail.sender.EmailSender by injection).
It does NOT import from api/. api/ imports from auth/, not the other way around.
"""
