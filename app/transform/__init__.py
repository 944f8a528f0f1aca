from app.transform.engine import ProcessingStats, TransformationEngine
from app.transform.processors import ProcessorContext
from app.transform.styles import StyleInjector

__all__ = ["ProcessingStats", "ProcessorContext", "StyleInjector", "TransformationEngine"]
