"""Identity resolution against the external authentication provider.

This app never stores users, sessions or tokens. Sign up, sign in and
token validation are delegated to the provider configured in
``settings.AUTH_PROVIDER``; the resolved user id becomes the owner id
stamped on every file and folder operation.
"""
