from spinbot.handlers.router import router

__all__ = ["router"]
