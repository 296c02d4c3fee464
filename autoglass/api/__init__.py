from autoglass.api.app import AppServices, build_services, create_app

__all__ = ["AppServices", "build_services", "create_app"]
