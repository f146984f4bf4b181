from notewise.api.routes.notes import router

__all__ = ["router"]
