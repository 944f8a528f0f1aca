from app.scheduler.reconciler import ReconciliationScheduler

__all__ = ["ReconciliationScheduler"]
