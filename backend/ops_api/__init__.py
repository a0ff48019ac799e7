"""
Ops API package: models, lifecycle services and the HTTP surface.
"""
