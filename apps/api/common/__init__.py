from .errors import (
    kivilcim_error_handler,
    register_api_error_handlers,
    request_validation_error_handler,
)

__all__ = [
    "kivilcim_error_handler",
    "register_api_error_handlers",
    "request_validation_error_handler",
]
