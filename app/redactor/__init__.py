from app.redactor.redactor import Redactor, build_redactor

__all__ = ["Redactor", "build_redactor"]
