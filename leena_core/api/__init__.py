from leena_core.api.service import create_app

__all__ = ["create_app"]
