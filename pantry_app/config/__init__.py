from pantry_app.config.settings import settings

__all__ = ["settings"]
