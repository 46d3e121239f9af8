"""Notifier service package.

This package contains the stateful service components:
- store.py: YAML key-value persistence of groups, rules and settings
- service.py: Intent mutation API and serialized reconciliation
"""
from .service import NotifierService
from .store import AppStore, YamlBlobStore

__all__ = ["NotifierService", "AppStore", "YamlBlobStore"]
