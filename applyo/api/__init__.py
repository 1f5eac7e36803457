"""
HTTP API package. The application lives in applyo.api.app.
"""
