"""Web front: HTML view, OAuth callback and the cookie-to-bearer session bridge."""
