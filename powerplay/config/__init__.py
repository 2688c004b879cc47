from powerplay.config.settings import settings

__all__ = ["settings"]
