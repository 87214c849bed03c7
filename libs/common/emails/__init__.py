"""
Storefront email package.

Modules:
- core: Base send_email function (SMTP with STARTTLS)
- store: Custom-order request email sent to the store inbox
"""
