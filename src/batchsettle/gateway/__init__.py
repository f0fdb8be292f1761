from .app import AppDeps, create_app, create_app_from_settings

__all__ = ["AppDeps", "create_app", "create_app_from_settings"]
