from app.models.review import MechanicReview
from app.models.setting import AppSetting
from app.models.vehicle import Vehicle

__all__ = [
    "Vehicle",
    "MechanicReview",
    "AppSetting",
]
