from app.detection.capture import ValueCapture
from app.detection.customer import CustomerDetector, CustomerRecord, CustomerValueResolver

__all__ = ["CustomerDetector", "CustomerRecord", "CustomerValueResolver", "ValueCapture"]
