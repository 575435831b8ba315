from . import contact, push

__all__ = ["contact", "push"]
