"""
Accounts app: the marketplace user model.

Identity, login and token issuance live outside the escrow engine; this app
only provides the user rows that orders, disputes and contracts point at.
Staff users (``is_staff``) act as marketplace admins.
"""
