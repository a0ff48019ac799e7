"""
Service layer.

- crud: repositories and the soft-delete core
- lifecycle: entity registry, validators, cascade engine, retention reaper
- domain: write services that create entities under scope and uniqueness rules
"""
