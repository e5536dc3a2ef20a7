from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_approved_profile, require_admin
from ...database import get_db
from ...models import Profile
from .schemas import TrafficReportResponse
from .service import TrafficReportService

router = APIRouter(prefix="/traffic-reports", tags=["Paid Traffic"])


def get_traffic_service(db: Session = Depends(get_db)) -> TrafficReportService:
    return TrafficReportService(db)


@router.get("", response_model=list[TrafficReportResponse])
async def list_reports(
    _: Profile = Depends(get_approved_profile),
    service: TrafficReportService = Depends(get_traffic_service),
):
    return service.list_reports()


@router.delete("/{report_id}")
async def delete_report(
    report_id: str,
    _: Profile = Depends(require_admin),
    service: TrafficReportService = Depends(get_traffic_service),
):
    return service.delete_report(report_id)
