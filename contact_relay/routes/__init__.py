from .contact import router as contact_router

__all__ = ["contact_router"]
