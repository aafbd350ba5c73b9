"""
Pytest configuration for authorize_endpoint. Pin the allowed response types before the app is imported.
"""
import os

os.environ["OAUTH_ALLOWED_RESPONSE_TYPES"] = "code"
os.environ.pop("OAUTH_LOGIN_ACTION", None)
