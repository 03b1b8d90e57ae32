from .kivilcim_error import KivilcimError

__all__ = [
    "KivilcimError",
]
