from .dto import validation_errors  # noqa: F401
