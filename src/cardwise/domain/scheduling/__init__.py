# Domain Scheduling Package
from .models import CardSchedule, CardState, Ease, LeechSignal, ReviewLogEntry, StudyCard

__all__ = ["Ease", "CardState", "CardSchedule", "ReviewLogEntry", "LeechSignal", "StudyCard"]
